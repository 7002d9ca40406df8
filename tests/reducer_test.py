"""
Verification Scenarios for the finding reducer
"""

import unittest

from validator_module.models import Finding
from validator_module.reducer import reduce

URL = "https://example.test/page"


def findings(*types):
    return [Finding(type=t, message=f"{t} #{i}", extract=f"<p>{i}</p>") for i, t in enumerate(types)]


class TestReducer(unittest.TestCase):

    def test_mixed_severities(self):
        """Scenario: error, info, warning with the default allow-set."""
        summary, details = reduce(findings("error", "info", "warning"), {"error", "warning"}, URL, "desktop")

        self.assertEqual(summary.as_row(), {"url": URL, "context": "desktop", "error": 1, "warning": 1})
        self.assertNotIn("info", summary.as_row())
        self.assertEqual(len(details), 2)

    def test_empty_findings(self):
        """Scenario: no findings still yields a summary carrying url and context only."""
        summary, details = reduce([], {"error", "warning"}, URL, "mobile")

        self.assertEqual(summary.as_row(), {"url": URL, "context": "mobile"})
        self.assertEqual(details, [])

    def test_counts_only_allowed_types(self):
        cases = [
            (("error", "error", "info"), {"error"}),
            (("warning", "info", "info", "error"), {"info", "warning"}),
            (("info",), {"error", "warning"}),
            (("error", "fatal", "warning", "error"), {"error", "warning", "info"}),
        ]
        for types, allowed in cases:
            with self.subTest(types=types, allowed=allowed):
                summary, details = reduce(findings(*types), allowed, URL, "ctx")
                expected_total = sum(1 for t in types if t in allowed)

                self.assertEqual(len(details), expected_total)
                for t in set(types):
                    if t in allowed:
                        self.assertEqual(summary.count(t), types.count(t))
                    else:
                        self.assertNotIn(t, summary.as_row())
                for d in details:
                    self.assertEqual((d.url, d.context), (URL, "ctx"))

    def test_details_preserve_input_order(self):
        items = findings("warning", "info", "error", "warning")
        _, details = reduce(items, ["warning", "error"], URL, "desktop")

        self.assertEqual([d.message for d in details], ["warning #0", "error #2", "warning #3"])
        self.assertEqual(details[1].extract, "<p>2</p>")

    def test_allowed_types_order_is_irrelevant(self):
        items = findings("error", "warning", "warning")
        a = reduce(items, ["error", "warning"], URL, "c")
        b = reduce(items, ("warning", "error"), URL, "c")

        self.assertEqual(a[0].as_row(), b[0].as_row())
        self.assertEqual(a[1], b[1])

    def test_deterministic(self):
        items = findings("error", "warning", "info", "error")
        self.assertEqual(reduce(items, {"error", "warning"}, URL, "c"),
                         reduce(items, {"error", "warning"}, URL, "c"))


class TestFinding(unittest.TestCase):

    def test_findings_with_extra_fields_are_hashable(self):
        """Scenario: Nu findings carry position fields, and callers dedupe them in a set."""
        raw = {"type": "error", "message": "Stray end tag", "extract": "</div>", "lastLine": 3}
        first, second = Finding.from_raw(raw), Finding.from_raw(dict(raw))

        self.assertEqual(first.extra, {"lastLine": 3})
        self.assertEqual(hash(first), hash(second))
        self.assertEqual(len({first, second}), 1)


if __name__ == "__main__":
    unittest.main()
