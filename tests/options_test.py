"""
Verification Scenarios for module options and result reporting
"""

import unittest

from validator_module.core import ModuleOptions, get_options
from validator_module.reporting import ResultLogger


class TestOptions(unittest.TestCase):

    def test_defaults(self):
        self.assertEqual(get_options(), ModuleOptions())

    def test_allowed_types_become_a_set(self):
        options = get_options({"allowed_types": ["warning", "error", "warning"]})
        self.assertEqual(options.allowed_types, frozenset({"error", "warning"}))

    def test_allowed_types_from_string(self):
        options = get_options({"allowed_types": "error, info"})
        self.assertEqual(options.allowed_types, frozenset({"error", "info"}))

    def test_unknown_option(self):
        with self.assertRaises(ValueError):
            get_options({"allowedTypez": ["error"]})


class TestResultLogger(unittest.TestCase):

    def test_result_is_tabulated(self):
        result_logger = ResultLogger()

        with self.assertLogs("html_validator.results", level="INFO") as logs:
            result_logger.result("html-validator",
                                 {"url": "https://example.test/", "context": "mobile", "warning": 2, "error": 1},
                                 "https://example.test/")

        output = logs.output[0]
        self.assertIn("[html-validator]", output)
        self.assertIn("Context", output)
        self.assertIn("mobile", output)
        self.assertIn("warning", output)

    def test_summary_without_counts(self):
        text = ResultLogger().format_result("html-validator", {"url": "u", "context": "c"}, "u")

        self.assertIn("Url", text)
        self.assertNotIn("error", text)


if __name__ == "__main__":
    unittest.main()
