import unittest

from ci_migrator.domain.verdict import CONFIDENCE_LEVELS, FOUND_TYPES, NO_VERDICT, EvidenceSet, Verdict
from ci_migrator.patterns.catalog import get_catalog
from ci_migrator.scan.classifier import RULES, classify
from ci_migrator.scan.evidence import scan


def verdict_for(text: str, profile: str = "synopsys") -> Verdict:
    cat = get_catalog(profile)
    return classify(scan(text, cat), cat)


class TestClassifierPrecedence(unittest.TestCase):
    def test_direct_task_is_direct_high(self) -> None:
        v = verdict_for("steps:\n- task: SynopsysSecurityScan@4\n")
        self.assertEqual(
            Verdict("direct", "high", "synopsys_present", "ado_task_synopsys_security_scan"),
            v,
        )

    def test_direct_dominates_template_reference(self) -> None:
        text = "- template: scans/polaris.yml@templates\n- task: SynopsysBridge@1\n"
        v = verdict_for(text)
        self.assertEqual("direct", v.found_type)
        self.assertEqual("ado_task_synopsys_bridge", v.invocation_style)

    def test_successor_task_beside_template_is_direct(self) -> None:
        text = "- template: scans/polaris.yml@templates\n- task: BlackDuckSecurityScan@2\n"
        self.assertEqual(
            Verdict("direct", "high", "synopsys_present", "ado_task_blackduck_security_scan"),
            verdict_for(text),
        )

    def test_template_reference_with_keyword_is_indirect_medium(self) -> None:
        text = "jobs:\n  build:\n    uses: org/repo/.github/workflows/build.yml@v1\n# polaris runs in the callee\n"
        self.assertEqual(
            Verdict("indirect", "medium", "template_or_reusable_workflow"),
            verdict_for(text),
        )

    def test_template_reference_without_keyword_is_none(self) -> None:
        self.assertEqual(NO_VERDICT, verdict_for("uses: org/repo/.github/workflows/build.yml@v1\n"))

    def test_shared_library_needs_no_keyword(self) -> None:
        text = "@Library('ci-lib') _\nnode {\n  securityScan()\n}\n"
        self.assertEqual(Verdict("indirect", "medium", "shared_library"), verdict_for(text))

    def test_shared_library_outranks_container(self) -> None:
        text = "@Library('ci-lib') _\nsh 'docker run img --coverity'\n"
        self.assertEqual("shared_library", verdict_for(text).approach)

    def test_container_with_keyword_is_indirect_medium(self) -> None:
        v = verdict_for("script: docker run myorg/coverity-runner:latest\n")
        self.assertEqual(Verdict("indirect", "medium", "container_based"), v)

    def test_container_without_keyword_is_none(self) -> None:
        self.assertEqual(NO_VERDICT, verdict_for("docker run myorg/scanner:latest\n"))

    def test_keyword_only_is_indirect_low(self) -> None:
        v = verdict_for("echo 'polaris migration pending'\n")
        self.assertEqual(Verdict("indirect", "low", "keyword_only"), v)

    def test_empty_text_is_none(self) -> None:
        v = verdict_for("")
        self.assertFalse(v.found)
        self.assertEqual({"found_type": "none", "confidence": "none", "approach": "none", "invocation_style": ""}, v.as_dict())

    def test_unreadable_evidence_is_none(self) -> None:
        self.assertEqual(NO_VERDICT, classify(EvidenceSet.empty(error="OSError: denied")))

    def test_identical_content_gives_identical_verdict(self) -> None:
        text = "- template: x.yml\n# coverity\n"
        self.assertEqual(verdict_for(text), verdict_for(text))

    def test_rule_table_covers_each_group_once(self) -> None:
        leads = [r.lead for r in RULES]
        self.assertEqual(len(leads), len(set(leads)))


class TestInvocationStyles(unittest.TestCase):
    def test_detect_curl_pipe_bash(self) -> None:
        v = verdict_for("curl -s -L https://detect.synopsys.com/detect.sh | bash\n", "detect")
        self.assertEqual("detect_present", v.approach)
        self.assertEqual("curl_pipe_bash_detect.sh", v.invocation_style)

    def test_detect_bash_process_substitution_wins_over_plain_script(self) -> None:
        v = verdict_for("bash <(curl -s https://detect.synopsys.com/detect.sh) --blackduck.url=$URL\n", "detect")
        self.assertEqual("bash_process_substitution_curl_detect.sh", v.invocation_style)

    def test_sast_profile_bare_polaris(self) -> None:
        v = verdict_for("polaris analyze -w\n", "sast")
        self.assertEqual(Verdict("direct", "high", "sast_present", "polaris_cli_or_config"), v)

    def test_github_action(self) -> None:
        v = verdict_for("- uses: synopsys-sig/synopsys-action@v1.6.0\n")
        self.assertEqual("github_action_synopsys_action", v.invocation_style)

    def test_coverity_cli(self) -> None:
        v = verdict_for("cov-build --dir idir mvn package\n")
        self.assertEqual("coverity_cli", v.invocation_style)

    def test_direct_without_named_style_is_unknown(self) -> None:
        v = verdict_for("JAVA_OPTS=--blackduck.url=https://bd.example.com\n")
        self.assertEqual("direct", v.found_type)
        self.assertEqual("unknown", v.invocation_style)

    def test_verdicts_stay_within_vocabulary(self) -> None:
        samples = [
            "",
            "# polaris\n",
            "- template: scans/polaris.yml@templates\n",
            "- task: SynopsysSecurityScan@4\n",
        ]
        for text in samples:
            v = verdict_for(text)
            self.assertIn(v.found_type, FOUND_TYPES)
            self.assertIn(v.confidence, CONFIDENCE_LEVELS)


if __name__ == "__main__":
    unittest.main()
