"""
Tests for the Formation Resolver and signal spec parsing.
"""

import pytest

from procfleet.core.formation import (
    InvalidFormationSpec,
    InvalidSignalSpec,
    parse_signal_map,
    resolve_formation,
)

KNOWN = ["alpha", "bravo"]


class TestResolveFormation:
    """Tests for resolve_formation."""

    @pytest.mark.parametrize("spec", [None, "", "   "])
    def test_default_formation(self, spec):
        """No spec means one instance of every process."""
        formation = resolve_formation(spec, KNOWN)
        assert formation.count_for("alpha") == 1
        assert formation.count_for("bravo") == 1

    def test_explicit_counts(self):
        formation = resolve_formation("alpha=2,bravo=3", KNOWN)
        assert formation.count_for("alpha") == 2
        assert formation.count_for("bravo") == 3

    def test_unlisted_process_defaults_to_one(self):
        formation = resolve_formation("alpha=2", KNOWN)
        assert formation.count_for("alpha") == 2
        assert formation.count_for("bravo") == 1

    def test_zero_count(self):
        assert resolve_formation("alpha=0", KNOWN).count_for("alpha") == 0

    def test_all_keyword_sets_default(self):
        """all=N sets the count of every process not listed explicitly."""
        formation = resolve_formation("alpha=2,all=0", KNOWN)
        assert formation.count_for("alpha") == 2
        assert formation.count_for("bravo") == 0

    def test_all_is_a_process_when_manifest_has_one(self):
        formation = resolve_formation("all=3", ["all", "bravo"])
        assert formation.count_for("all") == 3
        assert formation.count_for("bravo") == 1

    def test_whitespace_and_trailing_comma(self):
        formation = resolve_formation(" alpha = 2 , bravo=1, ", KNOWN)
        assert formation.count_for("alpha") == 2
        assert formation.count_for("bravo") == 1

    def test_last_duplicate_wins(self):
        assert resolve_formation("alpha=2,alpha=4", KNOWN).count_for("alpha") == 4

    def test_unknown_process_is_recorded_not_raised(self):
        """Names outside the manifest are kept but never become processes."""
        formation = resolve_formation("charlie=2", KNOWN)
        assert formation.counts["charlie"] == 2
        assert formation.count_for("alpha") == 1

    @pytest.mark.parametrize(
        "spec",
        ["alpha", "alpha=", "=2", "alpha=two", "alpha=-1", "alpha=1.5", "alpha=2,bravo"],
    )
    def test_invalid_spec(self, spec):
        with pytest.raises(InvalidFormationSpec) as exc_info:
            resolve_formation(spec, KNOWN)
        assert exc_info.value.spec == spec

    def test_invalid_spec_reports_segment(self):
        with pytest.raises(InvalidFormationSpec) as exc_info:
            resolve_formation("alpha=2,bravo=x", KNOWN)
        assert exc_info.value.segment == "bravo=x"
        assert "bravo=x" in str(exc_info.value)


class TestParseSignalMap:
    """Tests for parse_signal_map."""

    @pytest.mark.parametrize("spec", [None, ""])
    def test_no_overrides(self, spec):
        assert parse_signal_map(spec, KNOWN) == {}

    def test_overrides_kept_verbatim(self):
        assert parse_signal_map("alpha=USR2,bravo=SIGQUIT", KNOWN) == {
            "alpha": "USR2",
            "bravo": "SIGQUIT",
        }

    def test_unknown_process_is_kept(self):
        assert parse_signal_map("charlie=QUIT", KNOWN, kind="stop") == {"charlie": "QUIT"}

    @pytest.mark.parametrize("spec", ["alpha", "alpha=", "=USR2", "alpha=US R2", "alpha=USR2;rm"])
    def test_invalid_spec(self, spec):
        with pytest.raises(InvalidSignalSpec):
            parse_signal_map(spec, KNOWN)

    def test_kind_in_message(self):
        with pytest.raises(InvalidSignalSpec, match="stop signal"):
            parse_signal_map("alpha", KNOWN, kind="stop")
