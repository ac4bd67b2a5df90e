import bcrypt
import pytest

from plantcare.security.basic_auth import check_password, hash_password
from plantcare.security.passhash_cli import main


def test_prints_verifiable_hash(capsys):
    assert main(["--cost", "4", "s3cret"]) == 0
    printed = capsys.readouterr().out.strip()
    assert printed.startswith("$2b$04$")
    assert bcrypt.checkpw(b"s3cret", printed.encode())


def test_cost_out_of_range():
    with pytest.raises(SystemExit):
        main(["--cost", "3", "s3cret"])


def test_check_password():
    stored = hash_password("s3cret", rounds=4)
    assert check_password("s3cret", stored)
    assert not check_password("wrong", stored)
    assert not check_password("s3cret", "")
    assert not check_password("s3cret", "not-a-hash")
