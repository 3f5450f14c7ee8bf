from statement_converter.cli import main

STARLING_CSV = (
    "Date,Counter Party,Reference,Type,Amount (GBP),Balance (GBP),Spending Category,Notes\n"
    "01/02/2024,Acme,INV1,FASTER PAYMENT,-12.5,100.00,GENERAL,\n"
)


def test_convert_writes_next_to_input(tmp_path):
    src = tmp_path / "starling.csv"
    src.write_text(STARLING_CSV, encoding="utf-8")

    assert main(["convert", str(src), "--bank", "starling"]) == 0

    out = tmp_path / "starling_freeagent.csv"
    assert out.read_bytes() == b"01/02/2024,-12.50,Acme - INV1\r\n"


def test_convert_to_explicit_output(tmp_path):
    src = tmp_path / "in.csv"
    src.write_text(STARLING_CSV, encoding="utf-8")
    dest = tmp_path / "out"
    dest.mkdir()

    assert main(["convert", str(src), "--bank", "starling", "-o", str(dest / "x.csv")]) == 0
    assert (dest / "x.csv").exists()


def test_convert_to_stdout(tmp_path, capsys):
    src = tmp_path / "in.csv"
    src.write_text("Completed Date,Amount,Description\n2024-02-01 10:00:00,12.5,Coffee\n", encoding="utf-8")

    assert main(["convert", str(src), "--bank", "revolut", "--stdout"]) == 0
    assert capsys.readouterr().out == "01/02/2024,12.50,Coffee\r\n"


def test_conversion_error_exit_code(tmp_path, capsys):
    src = tmp_path / "in.csv"
    src.write_text("Completed Date,Amount,Description\n2024-02-01,abc,Coffee\n", encoding="utf-8")

    assert main(["convert", str(src), "--bank", "revolut"]) == 1
    err = capsys.readouterr().err
    assert 'Error during Revolut conversion: Invalid \'Amount\' in row 2: "abc". Not a valid number.' in err
    assert not (tmp_path / "in_freeagent.csv").exists()


def test_missing_input_file(tmp_path, capsys):
    assert main(["convert", str(tmp_path / "nope.csv"), "--bank", "starling"]) == 2
    assert "cannot read" in capsys.readouterr().err


def test_formats(capsys):
    assert main(["formats"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "starling\tStarling\tDate, Amount (GBP), Counter Party"
    assert len(lines) == 3


def test_reconverting_freeagent_output_keeps_every_row(tmp_path, capsys):
    src = tmp_path / "s.csv"
    src.write_text(STARLING_CSV, encoding="utf-8")
    assert main(["convert", str(src), "--bank", "starling"]) == 0
    converted = tmp_path / "s_freeagent.csv"
    capsys.readouterr()

    assert main(["convert", str(converted), "--bank", "freeagent", "--stdout"]) == 0
    assert capsys.readouterr().out == converted.read_bytes().decode("utf-8") == "01/02/2024,-12.50,Acme - INV1\r\n"


def test_reconverting_multi_row_freeagent_output(tmp_path, capsys):
    src = tmp_path / "two_freeagent.csv"
    src.write_bytes(b"01/02/2024,-12.50,Acme - INV1\r\n02/02/2024,3,Coffee\r\n")

    assert main(["convert", str(src), "--bank", "freeagent", "--stdout"]) == 0
    assert capsys.readouterr().out == "01/02/2024,-12.50,Acme - INV1\r\n02/02/2024,3.00,Coffee\r\n"
