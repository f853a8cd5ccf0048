import json

import pytest

from cvatmasks.cli import main, parse_args
from cvatmasks.pipeline.io import read_mask
from tests.helpers import cvat_xml

DOC = cvat_xml(
    ["car", "plate"],
    '<image id="0" name="street.jpg" width="100" height="50"><box label="car" xtl="0" ytl="0" xbr="99" ybr="49"/></image>'
    '<image id="1" name="yard.jpg" width="30" height="20"><box label="plate" xtl="1" ytl="1" xbr="4" ybr="2"/></image>',
)


class TestMain:
    def test_writes_masks_and_exits_zero(self, write_xml, tmp_path, capsys):
        out = tmp_path / "masks"
        code = main([str(write_xml(DOC)), str(out), "--workers", "2", "--log-level", "warning"])

        assert code == 0
        assert "processing time:" in capsys.readouterr().out
        assert sorted(p.name for p in out.iterdir()) == ["car", "plate"]
        assert sorted(p.name for p in (out / "car").iterdir()) == ["street.png", "yard.png"]
        assert (read_mask(out / "car" / "street.png") == 255).all()
        assert not read_mask(out / "car" / "yard.png").any()
        assert int((read_mask(out / "plate" / "yard.png") == 255).sum()) == 8

    def test_fatal_parse_error_creates_nothing(self, write_xml, tmp_path, capsys):
        out = tmp_path / "masks"
        code = main([str(write_xml("<annotations><image/></annotations>")), str(out)])

        assert code == 1
        assert "label catalog" in capsys.readouterr().err
        assert not out.exists()

    def test_partial_failure_exits_nonzero(self, write_xml, tmp_path, capsys):
        doc = cvat_xml(["car"], '<image name="a.jpg" width="5" height="5"><box label="car" xtl="0" ytl="0" xbr="q" ybr="1"/></image>')
        out = tmp_path / "masks"
        code = main([str(write_xml(doc)), str(out)])

        assert code == 1
        err = capsys.readouterr().err
        assert "1 annotation(s) skipped" in err
        assert (out / "car" / "a.png").exists()

    def test_grouped_mode_flag(self, write_xml, tmp_path):
        out = tmp_path / "masks"
        assert main([str(write_xml(DOC)), str(out), "--mode", "grouped"]) == 0
        assert sorted(p.name for p in (out / "car").iterdir()) == ["street_1.png"]

    def test_json_logs_on_stderr(self, write_xml, tmp_path, capsys):
        main([str(write_xml(DOC)), str(tmp_path / "o"), "--log-level", "info", "--log-format", "json"])
        lines = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.startswith("{")]
        finished = [line for line in lines if line["message"] == "generation_finished"]
        assert finished and finished[0]["masks"] == 4


class TestArguments:
    def test_missing_input_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            parse_args([str(tmp_path / "absent.xml"), str(tmp_path)])
        assert exc.value.code == 2

    def test_output_dir_required(self, write_xml):
        with pytest.raises(SystemExit):
            parse_args([str(write_xml(DOC))])

    def test_defaults_come_from_settings(self, write_xml, tmp_path, monkeypatch):
        monkeypatch.setenv("CVATMASKS_MASK_MODE", "grouped")
        monkeypatch.setenv("CVATMASKS_MAX_WORKERS", "3")
        args = parse_args([str(write_xml(DOC)), str(tmp_path)])
        assert args.mode == "grouped"
        assert args.workers == 3

    def test_workers_must_be_positive(self, write_xml, tmp_path):
        with pytest.raises(SystemExit):
            parse_args([str(write_xml(DOC)), str(tmp_path), "--workers", "0"])

    def test_invalid_environment_setting_exits_nonzero(self, write_xml, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("CVATMASKS_MASK_EXTENSION", "png")
        code = main([str(write_xml(DOC)), str(tmp_path / "out")])
        assert code == 1
        assert "error: invalid CVATMASKS_* settings" in capsys.readouterr().err
        assert not (tmp_path / "out").exists()
