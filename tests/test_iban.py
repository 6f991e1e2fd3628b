import pytest

from billmanager.checksum import check_digits, mod97, to_digits
from billmanager.iban import format_account, is_valid_account, normalize_account


class TestChecksum:
    def test_letters_become_numbers(self):
        assert to_digits("A0Z") == "10035"

    def test_rejects_non_alphanumeric(self):
        with pytest.raises(ValueError):
            to_digits("A-1")

    def test_mod97(self):
        assert mod97("97") == 0
        assert mod97("98") == 1

    def test_check_digits_iban(self):
        # CH93 0076 2011 6238 5295 7
        assert check_digits("00762011623852957", "CH") == "93"


class TestNormalizeAccount:
    def test_strips_whitespace_and_uppercases(self):
        assert normalize_account(" ch93 0076\t2011 ") == "CH9300762011"


class TestIsValidAccount:
    @pytest.mark.parametrize(
        "iban",
        [
            "CH93 0076 2011 6238 5295 7",
            "CH9300762011623852957",
            "ch93 0076 2011 6238 5295 7",
            "DE89 3704 0044 0532 0130 00",
            "GB82 WEST 1234 5698 7654 32",
        ],
    )
    def test_accepts_known_valid(self, iban):
        assert is_valid_account(iban) is True

    def test_rejects_flipped_digit(self):
        assert is_valid_account("CH9300762011623852958") is False

    def test_rejects_empty(self):
        assert is_valid_account("") is False
        assert is_valid_account("   ") is False

    @pytest.mark.parametrize(
        "iban",
        [
            "CH93-0076-2011-6238-5295-7",
            "CH93.00762011623852957",
            "CH93007620116238529ä7",
            "CH9300762011623852957!",
        ],
    )
    def test_rejects_non_alphanumeric(self, iban):
        assert is_valid_account(iban) is False

    def test_rejects_wrong_length(self):
        assert is_valid_account("CH930076201162385295") is False

    def test_rejects_unknown_country(self):
        assert is_valid_account("ZZ9300762011623852957") is False

    def test_rejects_letters_in_check_digits(self):
        assert is_valid_account("CHAB00762011623852957") is False

    def test_rejects_short_garbage(self):
        for raw in ("C", "CH", "CH9", "1234"):
            assert is_valid_account(raw) is False


class TestFormatAccount:
    def test_groups_of_four(self):
        assert format_account("CH9300762011623852957") == "CH93 0076 2011 6238 5295 7"
