from __future__ import annotations

import importlib.util
import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None

if JAX_AVAILABLE:
    from vcalc.cli import describe_document, main, render_menu, run, submit
    from vcalc.engine import CalculationSession, EngineState
    from vcalc.host import InMemoryHost, TextRange
    from vcalc.values import Value


DOCUMENT = "v = (1, 2, 3)\nm = ((1,2),(3,4))\nno numbers here"


def menu_number(menu, label: str) -> str:
    return str(menu.labels.index(label) + 1)


def probe(*steps: str):
    """Menu reached by replaying ``steps`` on a scratch session over DOCUMENT."""
    session = CalculationSession(InMemoryHost(DOCUMENT))
    menu = submit(session, steps[0])
    for label in steps[1:]:
        menu = session.choose(label)
    assert menu is not None
    return menu


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for CLI tests")
class DocumentListingTests(unittest.TestCase):
    def test_describe_document_lists_ranges_shapes_and_text(self) -> None:
        lines = describe_document(InMemoryHost(DOCUMENT))
        self.assertEqual(
            lines,
            [
                "0:4:13  vector3    (1, 2, 3)",
                "1:4:17  matrix2x2  ((1,2),(3,4))",
            ],
        )

    def test_several_values_on_one_line(self) -> None:
        lines = describe_document(InMemoryHost("p = (1, 2); q = 3"))
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("0:4:10  vector2"))
        self.assertTrue(lines[1].startswith("0:16:17  scalar"))

    def test_ragged_groups_list_their_typed_parts(self) -> None:
        lines = describe_document(InMemoryHost("((1,2),(3,4,5)) 7"))
        self.assertEqual(
            [line.split()[:2] for line in lines],
            [["0:1:6", "vector2"], ["0:7:14", "vector3"], ["0:16:17", "scalar"]],
        )

    def test_render_menu_numbers_entries_from_one(self) -> None:
        session = CalculationSession(InMemoryHost())
        menu = session.submit_operand("(3, 4)")
        assert menu is not None
        rendered = render_menu(menu)
        self.assertEqual(len(rendered), len(menu.entries))
        self.assertEqual(rendered[0], "  1. copy  (3, 4)")
        self.assertIn(f"{menu_number(menu, 'dot'):>3}. dot", rendered)


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for CLI tests")
class CommandRoutingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.host = InMemoryHost(DOCUMENT)
        self.session = CalculationSession(self.host)

    def test_literal_text(self) -> None:
        self.assertIsNotNone(submit(self.session, "(1, 2)"))
        self.assertEqual(self.session.selection, Value.of([1, 2]))
        self.assertIsNone(self.session.source_range)

    def test_range(self) -> None:
        self.assertIsNotNone(submit(self.session, "1:4:17"))
        self.assertEqual(self.session.selection, Value.of([1, 2, 3, 4], 2))
        self.assertEqual(self.session.source_range, TextRange(1, 4, 17))

    def test_constant(self) -> None:
        submit(self.session, "@k")
        self.assertEqual(self.session.selection, Value.of([0, 0, 1]))

    def test_unknown_constant_is_reported(self) -> None:
        self.assertIsNone(submit(self.session, "@nope"))
        self.assertEqual(self.host.messages[-1], "error: unknown constant 'nope'")


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for CLI tests")
class InteractiveLoopTests(unittest.TestCase):
    def setUp(self) -> None:
        self.host = InMemoryHost(DOCUMENT)
        self.session = CalculationSession(self.host)
        self.out = io.StringIO()

    def test_negate_and_replace(self) -> None:
        negate = menu_number(probe("0:4:13"), "negate")
        replace = menu_number(probe("0:4:13", "negate"), "replace")

        run(self.session, ["0:4:13", negate, replace], self.out)
        self.assertEqual(self.host.lines[0], "v = (-1, -2, -3)")
        self.assertIs(self.session.state, EngineState.IDLE)

    def test_binary_operator_prompts_for_operand(self) -> None:
        add = menu_number(probe("3"), "add")
        run(self.session, ["3", add], self.out)
        self.assertIn("operand?", self.out.getvalue().splitlines())
        self.assertIs(self.session.state, EngineState.AWAITING_SECOND_OPERAND)

    def test_bad_choice_keeps_menu(self) -> None:
        run(self.session, ["3", "999", "abc"], self.out)
        count = len(probe("3").entries)
        self.assertEqual(self.out.getvalue().count(f"choose 1-{count}, or nothing to cancel"), 2)
        self.assertIs(self.session.state, EngineState.SHOWING_MENU)

    def test_empty_choice_cancels(self) -> None:
        run(self.session, ["3", ""], self.out)
        self.assertIs(self.session.state, EngineState.IDLE)

    def test_blank_lines_are_ignored_while_idle_and_quit_stops(self) -> None:
        run(self.session, ["", "   ", "q", "3"], self.out)
        self.assertEqual(self.out.getvalue(), "")
        self.assertIsNone(self.session.selection)


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for CLI tests")
class MainTests(unittest.TestCase):
    def test_replace_is_written_back_to_the_file(self) -> None:
        negate = menu_number(probe("0:4:13"), "negate")
        replace = menu_number(probe("0:4:13", "negate"), "replace")

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "notes.txt"
            path.write_text(DOCUMENT, encoding="utf-8")
            stdin = io.StringIO(f"0:4:13\n{negate}\n{replace}\n")
            stdout = io.StringIO()
            with mock.patch("sys.stdin", stdin), mock.patch("sys.stdout", stdout):
                self.assertEqual(main([str(path), "--log-level", "ERROR"]), 0)

            self.assertEqual(path.read_text(encoding="utf-8").splitlines()[0], "v = (-1, -2, -3)")
            output = stdout.getvalue()
            self.assertIn("0:4:13  vector3    (1, 2, 3)", output)
            self.assertIn("constants: @pi, @e, @epsilon, @sqrt2, @sqrt3, @i, @j, @k, @pop", output)
            self.assertIn("negate (1, 2, 3) = (-1, -2, -3)", output)

    def test_copy_prints_clipboard_and_leaves_file_alone(self) -> None:
        copy = menu_number(probe("2"), "copy")

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "notes.txt"
            path.write_text(DOCUMENT, encoding="utf-8")
            before = path.stat().st_mtime_ns
            stdout = io.StringIO()
            with mock.patch("sys.stdin", io.StringIO(f"2\n{copy}\n")), mock.patch("sys.stdout", stdout):
                main([str(path), "--log-level", "ERROR"])

            self.assertIn("clipboard: 2", stdout.getvalue().splitlines())
            self.assertEqual(path.read_text(encoding="utf-8"), DOCUMENT)
            self.assertEqual(path.stat().st_mtime_ns, before)

    def test_without_document(self) -> None:
        stdout = io.StringIO()
        with mock.patch("sys.stdin", io.StringIO("@pi\n\n")), mock.patch("sys.stdout", stdout):
            self.assertEqual(main(["--log-level", "ERROR"]), 0)
        self.assertIn("Select 3.141592653589793", stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
