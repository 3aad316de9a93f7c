import json
from pathlib import Path
from tempfile import TemporaryDirectory

from reportlab.pdfgen import canvas  # type: ignore

RESULT_LINES = [
    "Final Result Sheet",
    "702893 gpa1:3.45 gpa2:3.60",
    "702894 gpa1:Ref gpa2:3.10 {512(Data Structures)}",
    "702895 ref_sub:101(X) 102(Y) 103(Z) 104(W)",
    "702896 ( 3.47 )",
]


def _make_pdf(path: Path) -> None:
    c = canvas.Canvas(str(path))
    c.setFont("Helvetica", 12)
    y = 720
    for line in RESULT_LINES:
        c.drawString(72, y, line)
        y -= 30
    c.save()


def test_cli_smoke(capsys):
    from result_parser.cli import main

    with TemporaryDirectory() as td:
        pdf = Path(td) / "sample.pdf"
        _make_pdf(pdf)
        import sys

        sys.argv = ["result-parser", str(pdf), "--roll", "702893", "702894", "702895", "702896", "999999"]
        assert main() == 0
        out = capsys.readouterr().out
        assert "Results for sample.pdf" in out
        assert "1st Semester: 3.45" in out
        assert "2nd Semester: 3.60" in out
        assert "1st Semester: Ref." in out
        assert "1. 512(DataStructures)" in out
        assert "DROP OUT" in out
        assert "1st Semester: 3.47" in out
        assert "Roll number 999999 was not found" in out


def test_cli_json_output(capsys):
    from result_parser.cli import main

    with TemporaryDirectory() as td:
        pdf = Path(td) / "sample.pdf"
        _make_pdf(pdf)
        assert main([str(pdf), "--roll", "702894", "702895", "--json"]) == 0
        records = json.loads(capsys.readouterr().out)
        assert [r["status"] for r in records] == ["found", "dropout"]
        assert records[0]["file"] == "sample.pdf"
        assert records[0]["gpas"] == [
            {"semester": "1st Semester", "gpa": "Ref."},
            {"semester": "2nd Semester", "gpa": "3.10"},
        ]
        assert records[0]["referred_subjects"] == ["512(DataStructures)"]


def test_cli_text_input_and_threshold(tmp_path, capsys):
    from result_parser.cli import main

    txt = tmp_path / "extracted.txt"
    txt.write_text("702893 ref_sub:101(X)\n102(Y) 702900 Absent", encoding="utf-8")
    assert main([str(txt), "--roll", "702893", "702900", "--dropout-threshold", "2"]) == 0
    out = capsys.readouterr().out
    assert "DROP OUT" in out
    assert "2 or more referred subjects" in out
    assert "Roll number 702900 was found, but no result data could be parsed" in out


def test_cli_missing_file_keeps_going(tmp_path, capsys):
    from result_parser.cli import main

    txt = tmp_path / "extracted.txt"
    txt.write_text("702893 ( 3.47 )", encoding="utf-8")
    assert main([str(tmp_path / "missing.pdf"), str(txt), "--roll", "702893"]) == 1
    captured = capsys.readouterr()
    assert "File not found" in captured.err
    assert "1st Semester: 3.47" in captured.out


def test_cli_unreadable_inputs_do_not_stop_later_files(tmp_path, capsys):
    from result_parser.cli import main

    bad_txt = tmp_path / "bad.txt"
    bad_txt.write_bytes(b"702893 \xff\xfe")
    bad_pdf = tmp_path / "bad.pdf"
    bad_pdf.write_text("not a pdf at all", encoding="utf-8")
    folder = tmp_path / "folder.pdf"
    folder.mkdir()
    good = tmp_path / "good.txt"
    good.write_text("702893 gpa1:3.45", encoding="utf-8")

    assert main([str(bad_txt), str(bad_pdf), str(folder), str(good), "--roll", "702893"]) == 1
    captured = capsys.readouterr()
    assert "Could not read bad.txt" in captured.err
    assert "Could not read bad.pdf" in captured.err
    assert "Could not read folder.pdf" in captured.err
    assert "Results for good.txt" in captured.out
    assert "1st Semester: 3.45" in captured.out


def test_cli_logs_each_input(tmp_path, caplog):
    import logging

    from result_parser.cli import main

    txt = tmp_path / "extracted.txt"
    txt.write_text("702893 ( 3.47 )", encoding="utf-8")
    caplog.set_level(logging.DEBUG, logger="result_parser.cli")
    assert main([str(txt), "--roll", "702893", "--verbose"]) == 0
    assert f"loading {txt}" in caplog.text
