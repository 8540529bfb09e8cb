"""Tests for the Playwright test parser."""

from __future__ import annotations

import pytest

from tm_sync.core.parser import TestParser
from tm_sync.models.parsed_test import TestKind
from tm_sync.utils.errors import ParserError


@pytest.fixture
def parser():
    return TestParser()


class TestParseFixtures:
    def test_parses_documented_test(self, parser, fixtures_dir):
        result = parser.parse_test_file(fixtures_dir / "sample-valid-test.spec.ts")

        assert result.total_tests == 1
        test = result.tests[0]
        assert test.title == "MM-T12345: User can post a message in a channel"
        assert test.test_case_id == "MM-T12345"
        assert test.kind is TestKind.NORMAL
        assert test.line_number == 8
        assert test.jsdoc_tags.objective == "Verify that a user can post a message in a channel"
        assert test.jsdoc_tags.preconditions == ("User is logged in", 'Channel "town-square" exists')
        assert [step.text for step in test.action_steps] == [
            "Log in as the user",
            "Visit the default channel",
            "Post a message",
        ]
        assert [step.line_number for step in test.action_steps] == [11, 14, 17]
        assert [step.text for step in test.verification_steps] == ["Verify the message appears in the channel"]
        assert test.verification_steps[0].line_number == 20

    def test_skip_and_fixme_modifiers(self, parser, fixtures_dir):
        result = parser.parse_test_file(fixtures_dir / "sample-test-skip.spec.ts")

        assert [test.kind for test in result.tests] == [TestKind.SKIPPED, TestKind.EXPECTED_FAILURE]
        skipped, fixme = result.tests
        assert skipped.test_case_id == "MM-T200"
        assert skipped.jsdoc_tags.known_issue == "MM-99999 flaky on webkit"
        assert fixme.jsdoc_tags.native_tags == ("@smoke", "@settings")
        assert [step.text for step in fixme.action_steps] == ["Toggle the setting"]
        assert [step.text for step in fixme.verification_steps] == ["Verify the setting persisted"]

    def test_file_tags_apply_to_every_test(self, parser, fixtures_dir):
        result = parser.parse_test_file(fixtures_dir / "sample-test.spec.ts")

        assert result.total_tests == 2
        assert all(test.jsdoc_tags.objective == "Verify message search results" for test in result.tests)
        assert result.tests[0].test_case_id is None
        assert result.tests[1].test_case_id == "MM-T100"
        assert result.tests[1].action_steps == ()

    def test_missing_file_raises_parser_error(self, parser, tmp_path):
        with pytest.raises(ParserError) as exc_info:
            parser.parse_test_file(tmp_path / "missing.spec.ts")
        assert exc_info.value.file_path.endswith("missing.spec.ts")

    def test_invalid_utf8_raises_parser_error(self, parser, tmp_path):
        path = tmp_path / "broken.spec.ts"
        path.write_bytes(b"test('x', async () => {\xff\xfe});")
        with pytest.raises(ParserError):
            parser.parse_test_file(path)


class TestCaseIds:
    def test_extracts_prefix_for_configured_project(self, parser):
        assert parser.extract_test_case_id("MM-T12345: Title") == "MM-T12345"

    def test_other_project_is_not_extracted(self, parser):
        assert parser.extract_test_case_id("PROJ-T123: Title") is None

    def test_custom_project_key(self):
        assert TestParser("PROJ").extract_test_case_id("PROJ-T123: Title") == "PROJ-T123"

    def test_only_ascii_digits_form_an_id(self, parser):
        assert parser.extract_test_case_id("MM-T\u0661\u0662: Arabic-Indic digits") is None

    def test_id_must_be_followed_by_colon(self, parser):
        assert parser.extract_test_case_id("MM-T12345 Title") is None
        assert parser.extract_test_case_id("See MM-T12345: Title") is None


class TestJsdocTags:
    def test_single_line_block(self, parser):
        tags = parser.extract_jsdoc_tags("/** @objective Check login */\n")
        assert tags.objective == "Check login"

    def test_multiline_values_are_collapsed(self, parser):
        code = "/**\n * @objective Verify a long\n * objective text\n * @precondition First\n */\n"
        tags = parser.extract_jsdoc_tags(code)
        assert tags.objective == "Verify a long objective text"
        assert tags.preconditions == ("First",)

    def test_only_first_block_is_used(self, parser):
        code = "/** @objective First */\n/** @objective Second */\n"
        assert parser.extract_jsdoc_tags(code).objective == "First"

    def test_no_block(self, parser):
        tags = parser.extract_jsdoc_tags("// @objective not a jsdoc block\n")
        assert tags.objective is None
        assert tags.preconditions == ()


class TestShapes:
    def test_expression_bodied_arrow_is_skipped(self, parser):
        code = "test('Expression bodied arrow function', async () => expect(1).toBe(1));\n"
        assert parser.parse_test_code(code, "a.spec.ts").tests == ()

    def test_non_literal_titles_are_skipped(self, parser):
        code = (
            "const title = 'dynamic';\n"
            "test(title, async () => {\n    await run();\n});\n"
            "test(`template ${title}`, async () => {\n    await run();\n});\n"
        )
        assert parser.parse_test_code(code, "a.spec.ts").tests == ()

    def test_other_callees_are_ignored(self, parser):
        code = (
            "it('Mocha style test title', async () => {\n    await run();\n});\n"
            "test.only('Focused test title here', async () => {\n    await run();\n});\n"
            "other.skip('Not a playwright test', async () => {\n    await run();\n});\n"
        )
        assert parser.parse_test_code(code, "a.spec.ts").tests == ()

    def test_tests_inside_describe_blocks(self, parser):
        code = (
            "test.describe('suite', () => {\n"
            "    test('Nested test inside describe', async () => {\n"
            "        // # Act\n"
            "        await run();\n"
            "    });\n"
            "});\n"
        )
        tests = parser.parse_test_code(code, "a.spec.ts").tests
        assert [test.title for test in tests] == ["Nested test inside describe"]
        assert [step.text for step in tests[0].action_steps] == ["Act"]
        assert tests[0].line_number == 2

    def test_function_expression_body(self, parser):
        code = "test('Function expression body', async function () {\n    // * Check\n    check();\n});\n"
        tests = parser.parse_test_code(code, "a.spec.ts").tests
        assert [step.text for step in tests[0].verification_steps] == ["Check"]

    def test_escaped_title(self, parser):
        code = "test('User\\'s profile loads correctly', async () => {\n    await run();\n});\n"
        assert parser.parse_test_code(code, "a.spec.ts").tests[0].title == "User's profile loads correctly"

    def test_syntax_errors_do_not_raise(self, parser):
        code = "test('Broken test file here', async () => {\n    await run(;\n"
        result = parser.parse_test_code(code, "a.spec.ts")
        assert result.file_path == "a.spec.ts"


class TestSteps:
    def test_trailing_comments_are_not_steps(self, parser):
        code = (
            "test('Trailing comments ignored', async () => {\n"
            "    await run(); // # not a step\n"
            "    expect(1).toBe(1); // * not a check\n"
            "});\n"
        )
        test = parser.parse_test_code(code, "a.spec.ts").tests[0]
        assert test.action_steps == ()
        assert test.verification_steps == ()

    def test_comment_before_closing_brace_is_not_a_step(self, parser):
        code = (
            "test('Dangling comment at end', async () => {\n"
            "    // # Real step\n"
            "    await run();\n"
            "    // * dangling\n"
            "});\n"
        )
        test = parser.parse_test_code(code, "a.spec.ts").tests[0]
        assert [step.text for step in test.action_steps] == ["Real step"]
        assert test.verification_steps == ()

    def test_consecutive_comments_all_lead_the_statement(self, parser):
        code = (
            "test('Consecutive step comments', async () => {\n"
            "    // # First\n"
            "    // # Second\n"
            "    // * Third\n"
            "    await run();\n"
            "});\n"
        )
        test = parser.parse_test_code(code, "a.spec.ts").tests[0]
        assert [(step.text, step.line_number) for step in test.action_steps] == [("First", 2), ("Second", 3)]
        assert [step.text for step in test.verification_steps] == ["Third"]

    def test_plain_comments_are_ignored(self, parser):
        code = (
            "test('Plain comments are ignored', async () => {\n"
            "    // setup the page\n"
            "    /* block */\n"
            "    await run();\n"
            "});\n"
        )
        test = parser.parse_test_code(code, "a.spec.ts").tests[0]
        assert test.action_steps == ()
        assert test.verification_steps == ()

    def test_comments_in_nested_blocks_count(self, parser):
        code = (
            "test('Steps inside test.step blocks', async () => {\n"
            "    await test.step('login', async () => {\n"
            "        // # Log in\n"
            "        await login();\n"
            "    });\n"
            "    if (ready) {\n"
            "        // * Verify ready\n"
            "        expect(ready).toBe(true);\n"
            "    }\n"
            "});\n"
        )
        tests = parser.parse_test_code(code, "a.spec.ts").tests
        assert len(tests) == 1
        assert [step.text for step in tests[0].action_steps] == ["Log in"]
        assert [step.text for step in tests[0].verification_steps] == ["Verify ready"]

    def test_marker_requires_space(self, parser):
        code = (
            "test('Marker without space is ignored', async () => {\n"
            "    //# squashed\n"
            "    await run();\n"
            "});\n"
        )
        assert parser.parse_test_code(code, "a.spec.ts").tests[0].action_steps == ()
