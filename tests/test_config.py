import dataclasses
import re
import unittest

from pyinfuse.config import DEFAULT_CONFIG, InfuseConfig


class TestConfig(unittest.TestCase):
    def test_default_config(self) -> None:
        config = InfuseConfig()
        self.assertEqual(config.constant_exp, "const-")
        self.assertEqual(config.event_handler_exp, "on")
        self.assertEqual(config.watch_exp, "watch-")
        self.assertEqual(config.iteration_attribute, "for")
        self.assertEqual(config.collection_attributes, ("each", "of"))
        self.assertEqual(config.context_function_id, "data-cid")
        self.assertEqual(config.template_id, "data-tid")
        self.assertEqual(config.placeholder_id, "data-pid")
        self.assertEqual(config.sweep_flag, "data-sweep")
        self.assertEqual(config.event_name, "event")
        self.assertEqual(config.tags_name, "tags")
        self.assertEqual(config.text_node_min_length, 4)
        self.assertFalse(config.camel_case_events)
        self.assertEqual(config, DEFAULT_CONFIG)

    def test_with_options(self) -> None:
        pattern = re.compile(r"^(\w+)-const$")
        config = DEFAULT_CONFIG.with_options(constant_exp=pattern, tags=["i18n"])

        self.assertIs(config.constant_exp, pattern)
        self.assertEqual(config.tags, ("i18n",))
        # The defaults are left alone.
        self.assertEqual(DEFAULT_CONFIG.constant_exp, "const-")
        self.assertEqual(DEFAULT_CONFIG.tags, ())

    def test_unknown_option(self) -> None:
        with self.assertRaises(TypeError) as context:
            DEFAULT_CONFIG.with_options(prefix="x-", constant_exp="c-")
        self.assertIn("prefix", str(context.exception))

    def test_invalid_values(self) -> None:
        with self.assertRaises(ValueError):
            InfuseConfig(text_node_min_length=0)
        with self.assertRaises(ValueError):
            InfuseConfig(hash_length=0)

    def test_config_is_frozen(self) -> None:
        with self.assertRaises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.event_name = "evt"  # type: ignore[misc]

    def test_config_is_hashable(self) -> None:
        config = DEFAULT_CONFIG.with_options(collection_attributes=["items"])
        self.assertEqual(config.collection_attributes, ("items",))
        self.assertIsInstance(hash(config), int)


if __name__ == "__main__":
    unittest.main()
