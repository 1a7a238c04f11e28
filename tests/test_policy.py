import dataclasses
import unittest

from assistant.prompts.support.policy import STORE_FAQ, SUPPORT_PERSONA, build_policy_prompt


class TestPolicyPrompt(unittest.TestCase):

    def test_text_is_persona_then_faq(self):
        self.assertEqual(build_policy_prompt().text, f"{SUPPORT_PERSONA}\n\n{STORE_FAQ}")

    def test_covers_store_facts(self):
        text = build_policy_prompt().text.lower()
        for topic in ("shipping", "return", "refund", "support hours"):
            with self.subTest(topic=topic):
                self.assertIn(topic, text)

    def test_immutable_and_overridable(self):
        policy = build_policy_prompt(faq="FAQ: we sell hats.")

        self.assertTrue(policy.text.endswith("FAQ: we sell hats."))
        with self.assertRaises(dataclasses.FrozenInstanceError):
            policy.faq = "changed"


if __name__ == "__main__":
    unittest.main()
