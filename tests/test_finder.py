"""Tests for finding string-literal references in expressions."""

import pytest

from eventsrename.expression import Span, parse_expression
from eventsrename.finder import ExpressionIdentifierStringFinder, find_occurrences
from eventsrename.request import NameChangeRequest


def request(parameter_type, old_name, scope=""):
    return NameChangeRequest(
        parameter_type=parameter_type,
        old_name=old_name,
        new_name=old_name + "Renamed",
        scope_object_name=scope,
    )


@pytest.fixture
def find(metadata, objects):
    """Run the finder on a text and return the matched substrings."""

    def _find(text, parameter_type, old_name, scope=""):
        root = parse_expression(text)
        assert root is not None, f"could not parse {text!r}"
        spans = find_occurrences(
            root, text, request(parameter_type, old_name, scope), metadata, objects
        )
        return [(span, span.slice(text)) for span in spans]

    return _find


def positions(text, part):
    """Spans of every occurrence of ``part`` in ``text``."""
    result, start = [], 0
    while (index := text.find(part, start)) != -1:
        result.append(Span(index, index + len(part)))
        start = index + len(part)
    return result


class TestFreeFunctions:
    """Tests for calls of free functions."""

    def test_matching_argument(self, find):
        """Test a literal in a matching argument slot is found."""
        text = 'LayerTimeScale("Background")'
        assert find(text, "layer", "Background") == [
            (positions(text, '"Background"')[0], '"Background"')
        ]

    def test_other_type_is_ignored(self, find):
        """Test arguments of another declared type are ignored."""
        assert find('StrLength("Background")', "layer", "Background") == []

    def test_other_name_is_ignored(self, find):
        """Test literals naming something else are ignored."""
        assert find('LayerTimeScale("Foreground")', "layer", "Background") == []

    def test_no_prefix_match(self, find):
        """Test a longer name starting with the old name does not match."""
        assert find('LayerTimeScale("BackgroundExtra")', "layer", "Background") == []

    def test_no_substring_match(self, find):
        """Test a literal containing the old name does not match."""
        assert find('LayerTimeScale("The Background")', "layer", "Background") == []

    def test_expression_built_name_is_not_a_reference(self, find):
        """Test a name built by concatenation is not a reference."""
        assert find('LayerTimeScale("Back" + "ground")', "layer", "Background") == []

    def test_several_occurrences_are_sorted(self, find):
        """Test several references come out in text order."""
        text = 'CameraX("UI", 0) + LayerTimeScale("UI") * CameraX("UI", 1)'
        found = find(text, "layer", "UI")
        assert [span for span, _ in found] == positions(text, '"UI"')
        assert [span.start for span, _ in found] == sorted(
            span.start for span, _ in found
        )

    def test_two_matching_parameters_of_one_call(self, find):
        """Test both matching arguments of one call are found."""
        text = 'Pick("UI", "UI")'
        assert [s for s, _ in find(text, "layer", "UI")] == positions(text, '"UI"')

    def test_code_only_parameter_is_skipped(self, find):
        """Test code-only parameters take no argument slot."""
        # CameraY declares a code-only scene parameter before the layer
        text = 'CameraY("UI", 0)'
        assert [part for _, part in find(text, "layer", "UI")] == ['"UI"']

    def test_unknown_function_is_skipped(self, find):
        """Test calls without declaration are skipped."""
        text = 'Unknown("UI") + LayerTimeScale("UI")'
        assert find(text, "layer", "UI") == [(positions(text, '"UI"')[1], '"UI"')]

    def test_unknown_function_arguments_are_not_searched(self, find):
        """Test arguments of unknown calls are not searched."""
        assert find('Unknown(LayerTimeScale("UI"))', "layer", "UI") == []


class TestNesting:
    """Tests for references nested in operators, calls and variables."""

    def test_inside_operators_and_parentheses(self, find):
        """Test references below operators and parentheses."""
        text = '-(1 + 2 * LayerTimeScale("UI"))'
        assert [part for _, part in find(text, "layer", "UI")] == ['"UI"']

    def test_inside_matching_argument(self, find):
        """Test nested calls whose slots have another type."""
        # The outer argument is a layer argument that is not itself the literal
        text = 'LayerTimeScale(Concatenate("U", "I")) + CameraX(Concatenate("UI", "UI"), 0)'
        assert find(text, "string", "UI") == []
        assert find(text, "layer", "UI") == []

    def test_matching_argument_is_searched_recursively(self, find):
        """Test a matching argument that is not a literal is searched."""
        text = 'Concatenate(Concatenate("A", "B"), "A")'
        assert [s for s, _ in find(text, "string", "A")] == positions(text, '"A"')

    def test_argument_of_other_type_is_not_searched(self, find):
        """Test arguments of another type are not searched."""
        # ToString takes a number expression, so the nested call is not visited
        assert find('ToString(LayerTimeScale("UI"))', "layer", "UI") == []

    def test_inside_variable_bracket_accessor(self, find):
        """Test references inside a variable bracket accessor."""
        text = 'Scores[Concatenate("A", "b")].Best + Scores["A"]'
        found = find(text, "string", "A")
        assert [part for _, part in found] == ['"A"']
        assert found[0][0] == positions(text, '"A"')[0]

    def test_bare_string_is_never_a_reference(self, find):
        """Test literals outside any call are never references."""
        assert find('"UI"', "layer", "UI") == []
        assert find('"UI" + "UI"', "layer", "UI") == []

    def test_identifier_and_number_are_ignored(self, find):
        """Test identifiers and numbers are never references."""
        assert find("UI + 2", "layer", "UI") == []


class TestObjectFunctions:
    """Tests for functions called on objects and behaviors."""

    def test_object_parameter_is_bound(self, find):
        """Test the object parameter is bound by the call syntax."""
        text = 'Player.AnimationFrameCount("Run")'
        assert [part for _, part in find(text, "objectAnimationName", "Run")] == ['"Run"']

    def test_base_object_expression(self, find):
        """Test expressions declared for every object type."""
        text = 'Score.IsActive("Player")'
        assert [part for _, part in find(text, "objectName", "Player")] == ['"Player"']

    def test_object_type_specific_expression(self, find):
        """Test expressions only declared for another object type."""
        # AnimationFrameCount only exists for sprites
        assert find('Score.AnimationFrameCount("Run")', "objectAnimationName", "Run") == []

    def test_unknown_object_uses_base_object(self, find):
        """Test unknown objects fall back to base object expressions."""
        assert [p for _, p in find('Ghost.IsActive("Player")', "objectName", "Player")] == [
            '"Player"'
        ]

    def test_group_with_common_type(self, find):
        """Test groups whose objects share a type."""
        text = 'Characters.AnimationFrameCount("Run")'
        assert [p for _, p in find(text, "objectAnimationName", "Run")] == ['"Run"']

    def test_group_with_mixed_types(self, find):
        """Test groups mixing object types."""
        text = 'Everything.AnimationFrameCount("Run")'
        assert find(text, "objectAnimationName", "Run") == []

    def test_global_object(self, find):
        """Test objects found in the parent container."""
        assert [p for _, p in find('Hud.BehaviorEnabled("Fade")', "behavior", "Fade")] == [
            '"Fade"'
        ]

    def test_code_only_after_object(self, find):
        """Test a code-only parameter after the object parameter."""
        text = 'Player.DistanceOnLayer("UI")'
        assert [p for _, p in find(text, "layer", "UI")] == ['"UI"']

    def test_behavior_function(self, find):
        """Test behavior expressions skip object and behavior parameters."""
        text = 'Player.Clock::Elapsed("Jump")'
        assert [p for _, p in find(text, "identifier", "Jump")] == ['"Jump"']

    def test_behavior_unknown_on_object(self, find):
        """Test behaviors the object does not have."""
        assert find('Score.Clock::Elapsed("Jump")', "identifier", "Jump") == []

    def test_behavior_of_group(self, find):
        """Test behaviors shared by a group."""
        text = 'Characters.Clock::Elapsed("Jump")'
        assert [p for _, p in find(text, "identifier", "Jump")] == ['"Jump"']


class TestScope:
    """Tests for restricting references to calls on one object."""

    def test_only_calls_on_scope_object(self, find):
        """Test only calls on the scope object are considered."""
        text = 'Enemy.IsActive("MyObject") + Player.IsActive("MyObject")'
        found = find(text, "objectName", "MyObject", scope="Player")
        assert found == [(positions(text, '"MyObject"')[1], '"MyObject"')]

    def test_no_scope_matches_all(self, find):
        """Test every call is considered without a scope."""
        text = 'Enemy.IsActive("MyObject") + Player.IsActive("MyObject")'
        assert len(find(text, "objectName", "MyObject")) == 2

    def test_free_functions_out_of_scope(self, find):
        """Test free functions are skipped when a scope is set."""
        text = 'IsObjectActive("Player", "MyObject")'
        assert find(text, "objectName", "MyObject", scope="Player") == []
        assert len(find(text, "objectName", "MyObject")) == 1


class TestAlignment:
    """Tests for argument counts that differ from the declaration."""

    def test_more_arguments_than_declared(self, find):
        """Test extra arguments are ignored."""
        text = 'LayerTimeScale("A", "UI")'
        assert find(text, "layer", "UI") == []
        assert [p for _, p in find(text, "layer", "A")] == ['"A"']

    def test_fewer_arguments_than_declared(self, find):
        """Test missing arguments are tolerated."""
        assert [p for _, p in find('Pick("UI")', "layer", "UI")] == ['"UI"']

    def test_no_arguments(self, find):
        """Test calls without arguments."""
        assert find("Pick()", "layer", "UI") == []


class TestFinderObject:
    """Tests for the finder class itself."""

    def test_default_objects(self, metadata):
        """Test find_occurrences without objects container."""
        text = 'Player.IsActive("X")'
        spans = find_occurrences(
            parse_expression(text), text, request("objectName", "X"), metadata
        )
        assert [s.slice(text) for s in spans] == ['"X"']

    def test_find_returns_copy(self, metadata, objects):
        """Test find returns a copy of the collected spans."""
        text = 'LayerTimeScale("UI")'
        finder = ExpressionIdentifierStringFinder(
            metadata, objects, text, request("layer", "UI")
        )
        result = finder.find(parse_expression(text))
        result.clear()
        assert len(finder.occurrences) == 1


class TestLongExpressions:
    """Tests for expressions with very deep trees."""

    def test_long_sum(self, find):
        """Test a sum of many terms is walked without recursion limits."""
        text = " + ".join(['Concatenate("Hi", "x")'] * 1500)
        found = find(text, "string", "Hi")
        assert [span for span, _ in found] == positions(text, '"Hi"')

    def test_long_nesting_keeps_order(self, find):
        """Test references stay in text order with arguments after nested calls."""
        text = " + ".join(['Concatenate(Concatenate("A", "b"), "A")'] * 1200)
        assert [span for span, _ in find(text, "string", "A")] == positions(text, '"A"')
