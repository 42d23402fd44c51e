"""Tests for CLI commands."""

import json

from typer.testing import CliRunner

from testimony_audit import __version__
from testimony_audit.cli import app
from testimony_audit.storage import ClipStore


runner = CliRunner()


class TestVersion:
    """Tests for --version."""

    def test_version(self):
        """Test the version flag."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestValidateCommand:
    """Tests for 'testimony-audit validate'."""

    def test_missing_store(self, tmp_path):
        """Test a clear error when the store is missing."""
        result = runner.invoke(app, ["validate", "--clips", str(tmp_path / "none.json")])

        assert result.exit_code == 1
        assert "Clip store not found" in result.output

    def test_counts(self, clips_file):
        """Test the considered/flagged line."""
        result = runner.invoke(app, ["validate", "--clips", str(clips_file)])

        assert result.exit_code == 0
        assert "8 clips considered, 2 already resolved, 5 flagged" in result.output
        assert "swap" in result.output

    def test_json(self, clips_file):
        """Test JSON output."""
        result = runner.invoke(app, ["validate", "--clips", str(clips_file), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["summary"]["flagged"] == 5
        assert [f["clip_id"] for f in data["flagged_clips"]] == ["swap", "zero", "short", "long", "late"]

    def test_json_severity_filter(self, clips_file):
        """Test --severity narrows the listed findings but not the summary."""
        result = runner.invoke(
            app, ["validate", "--clips", str(clips_file), "--json", "--severity", "medium"]
        )

        data = json.loads(result.output)
        assert [f["clip_id"] for f in data["flagged_clips"]] == ["short", "late"]
        assert data["summary"]["flagged"] == 5

    def test_no_findings(self, tmp_path):
        """Test a clean store."""
        path = tmp_path / "clips.json"
        path.write_text(json.dumps([{"id": "a", "startTimeSeconds": 0, "endTimeSeconds": 60}]))

        result = runner.invoke(app, ["validate", "--clips", str(path)])

        assert result.exit_code == 0
        assert "No flagged clips" in result.output

    def test_bad_config(self, clips_file, tmp_path):
        """Test invalid thresholds are reported."""
        config = tmp_path / "thresholds.json"
        config.write_text(json.dumps({"min_duration_seconds": -1}))

        result = runner.invoke(
            app, ["validate", "--clips", str(clips_file), "--config", str(config)]
        )

        assert result.exit_code == 1
        assert "[configuration]" in result.output


class TestRepairCommand:
    """Tests for 'testimony-audit repair'."""

    def test_dry_run(self, clips_file):
        """Test proposals are listed without writing."""
        before = clips_file.read_text()

        result = runner.invoke(app, ["repair", "--clips", str(clips_file)])

        assert result.exit_code == 0
        assert "Dry run" in result.output
        assert clips_file.read_text() == before

    def test_apply_requires_by(self, clips_file):
        """Test --apply needs a reviewer name."""
        result = runner.invoke(app, ["repair", "--clips", str(clips_file), "--apply"])

        assert result.exit_code == 1
        assert "--by" in result.output

    def test_apply(self, clips_file):
        """Test safe proposals are written."""
        result = runner.invoke(
            app, ["repair", "--clips", str(clips_file), "--apply", "--by", "admin"]
        )

        assert result.exit_code == 0
        assert "Applied 1 repairs" in result.output
        assert ClipStore(clips_file).get("swap")["endTimeSeconds"] == 120


class TestAcceptCommand:
    """Tests for 'testimony-audit accept'."""

    def test_accept_low_confidence(self, clips_file):
        """Test accepting a guessed end time for one clip."""
        result = runner.invoke(
            app, ["accept", "long", "--by", "admin", "--clips", str(clips_file)]
        )

        assert result.exit_code == 0
        assert ClipStore(clips_file).get("long")["endTimeSeconds"] == 300

    def test_accept_without_proposal(self, clips_file):
        """Test a clip with no automatic repair."""
        result = runner.invoke(
            app, ["accept", "zero", "--by", "admin", "--clips", str(clips_file)]
        )

        assert result.exit_code == 1
        assert "No automatic repair" in result.output

    def test_accept_clean_clip(self, clips_file):
        """Test accepting a clip that isn't flagged."""
        result = runner.invoke(
            app, ["accept", "ok1", "--by", "admin", "--clips", str(clips_file)]
        )

        assert result.exit_code == 0
        assert "not flagged" in result.output

    def test_accept_unknown(self, clips_file):
        """Test accepting an unknown clip."""
        result = runner.invoke(
            app, ["accept", "nope", "--by", "admin", "--clips", str(clips_file)]
        )

        assert result.exit_code == 1
        assert "[resource]" in result.output


class TestOkayAndUndo:
    """Tests for 'okay' and 'undo'."""

    def test_okay(self, clips_file):
        """Test marking a false positive."""
        result = runner.invoke(
            app, ["okay", "late", "--by", "admin", "--clips", str(clips_file)]
        )

        assert result.exit_code == 0
        assert ClipStore(clips_file).get("late")["falsePositive"] is True

    def test_undo(self, clips_file):
        """Test undoing an applied repair."""
        runner.invoke(app, ["repair", "--clips", str(clips_file), "--apply", "--by", "admin"])

        result = runner.invoke(app, ["undo", "swap", "--clips", str(clips_file)])

        assert result.exit_code == 0
        assert ClipStore(clips_file).get("swap")["startTimeSeconds"] == 120

    def test_undo_nothing(self, clips_file):
        """Test undoing a clip with no repairs."""
        result = runner.invoke(app, ["undo", "zero", "--clips", str(clips_file)])

        assert result.exit_code == 1


class TestSummaryCommand:
    """Tests for 'testimony-audit summary'."""

    def test_summary(self, clips_file):
        """Test severity and kind tables."""
        result = runner.invoke(app, ["summary", "--clips", str(clips_file)])

        assert result.exit_code == 0
        assert "Clip Validation Summary" in result.output
        assert "negative_duration" in result.output
        assert "start_out_of_range" in result.output
