"""Pairing, exchange, refresh and logout against a real (in-memory) store."""
import pytest

from models import storage
from models.device_code import DeviceCode
from models.refresh_token import RefreshToken
from models.secret_store import SecretStore
from utils.mobile_auth import (
    authenticate,
    exchange_device_code,
    parse_device_name,
    refresh_access_token,
    request_pairing_code,
    revoke_refresh_token,
)
from utils.security import create_access_token, hash_token, verify_access_token


@pytest.fixture
def paired(user):
    """Token pair of a freshly paired device."""
    code = request_pairing_code(user.id)
    return exchange_device_code(code, device_name="iPhone")


class TestPairingCodes:

    def test_code_shape(self, user):
        code = request_pairing_code(user.id)

        assert len(code) == 6
        assert code == code.upper()

    def test_only_hash_is_stored(self, user):
        code = request_pairing_code(user.id)

        row = storage.get_session().query(DeviceCode).filter(DeviceCode.user_id == user.id).one()
        assert row.code_hash == hash_token(code)
        assert row.consumed_at is None

    def test_expires_after_ten_minutes(self, user, clock):
        request_pairing_code(user.id)

        row = storage.get_session().query(DeviceCode).one()
        assert (row.expires_at - clock.now).total_seconds() == 600

    def test_new_request_purges_stale_codes(self, user, clock):
        used = request_pairing_code(user.id)
        exchange_device_code(used)
        request_pairing_code(user.id)
        clock.advance(minutes=11)

        request_pairing_code(user.id)
        assert storage.count(DeviceCode) == 1

    def test_live_codes_survive_new_request(self, user):
        request_pairing_code(user.id)
        request_pairing_code(user.id)

        assert storage.count(DeviceCode) == 2


class TestExchange:

    def test_returns_token_pair(self, user):
        code = request_pairing_code(user.id)

        tokens = exchange_device_code(code, device_name="iPhone")
        assert tokens["expiresIn"] == 900
        identity = verify_access_token(tokens["accessToken"])
        assert identity["userId"] == user.id

        row = storage.get_session().query(RefreshToken).one()
        assert row.token_hash == hash_token(tokens["refreshToken"])
        assert row.device_id == identity["deviceId"]
        assert row.device_name == "iPhone"

    def test_refresh_token_lives_ninety_days(self, user, clock, paired):
        row = storage.get_session().query(RefreshToken).one()

        assert (row.expires_at - clock.now).days == 90

    def test_code_is_single_use(self, user):
        code = request_pairing_code(user.id)

        assert exchange_device_code(code) is not None
        assert exchange_device_code(code) is None
        assert storage.count(RefreshToken) == 1

    def test_case_insensitive(self, user):
        code = request_pairing_code(user.id)

        assert exchange_device_code(code.lower()) is not None

    def test_unknown_code(self, user):
        request_pairing_code(user.id)

        assert exchange_device_code("0O1I00") is None

    def test_usable_one_second_before_expiry(self, user, clock):
        code = request_pairing_code(user.id)

        clock.advance(minutes=10, seconds=-1)
        assert exchange_device_code(code) is not None

    def test_unusable_at_expiry(self, user, clock):
        code = request_pairing_code(user.id)

        clock.advance(minutes=10)
        assert exchange_device_code(code) is None

    def test_unusable_one_second_after_expiry(self, user, clock):
        code = request_pairing_code(user.id)

        clock.advance(minutes=10, seconds=1)
        assert exchange_device_code(code) is None

    def test_each_pairing_gets_its_own_device(self, user):
        first = exchange_device_code(request_pairing_code(user.id))
        second = exchange_device_code(request_pairing_code(user.id))

        assert verify_access_token(first["accessToken"])["deviceId"] != \
            verify_access_token(second["accessToken"])["deviceId"]
        assert storage.count(RefreshToken) == 2

    def test_concurrent_exchange_single_winner(self, user):
        code = request_pairing_code(user.id)
        results = {}

        class RacingStore(SecretStore):
            """Lets a second exchange of the same code run between lookup and consume."""
            raced = False

            def consume_device_code(self, code_id, now):
                if not self.raced:
                    self.raced = True
                    results["rival"] = exchange_device_code(code)
                return super().consume_device_code(code_id, now)

        results["first"] = exchange_device_code(code, store=RacingStore(storage))

        assert results["rival"] is not None
        assert results["first"] is None
        assert storage.count(RefreshToken) == 1


class TestRefresh:

    def test_rotates(self, paired):
        rotated = refresh_access_token(paired["refreshToken"])

        assert rotated["refreshToken"] != paired["refreshToken"]
        assert rotated["expiresIn"] == 900
        assert verify_access_token(rotated["accessToken"]) == verify_access_token(paired["accessToken"])

    def test_old_refresh_token_dies(self, paired):
        rotated = refresh_access_token(paired["refreshToken"])

        assert refresh_access_token(paired["refreshToken"]) is None
        assert refresh_access_token(rotated["refreshToken"]) is not None

    def test_rotation_keeps_one_record(self, paired, clock):
        clock.advance(days=3)
        refresh_access_token(paired["refreshToken"])

        row = storage.get_session().query(RefreshToken).one()
        assert row.last_used_at == clock.now
        assert (row.expires_at - clock.now).days == 90

    def test_sliding_expiry_keeps_session_alive(self, paired, clock):
        token = paired["refreshToken"]
        for _ in range(6):
            clock.advance(days=89)
            tokens = refresh_access_token(token)
            assert tokens is not None
            token = tokens["refreshToken"]

    def test_unused_for_more_than_ninety_days(self, paired, clock):
        clock.advance(days=90, seconds=1)

        assert refresh_access_token(paired["refreshToken"]) is None

    def test_unknown_token(self, paired):
        assert refresh_access_token("f" * 64) is None

    def test_concurrent_refresh_single_winner(self, paired):
        results = {}

        class RacingStore(SecretStore):
            raced = False

            def rotate_refresh_token(self, *args, **kwargs):
                if not self.raced:
                    self.raced = True
                    results["rival"] = refresh_access_token(paired["refreshToken"])
                return super().rotate_refresh_token(*args, **kwargs)

        results["first"] = refresh_access_token(paired["refreshToken"], store=RacingStore(storage))

        assert results["rival"] is not None
        assert results["first"] is None
        assert refresh_access_token(results["rival"]["refreshToken"]) is not None


class TestLogout:

    def test_revoke_blocks_refresh(self, paired):
        assert revoke_refresh_token(paired["refreshToken"]) is True

        assert refresh_access_token(paired["refreshToken"]) is None

    def test_revoke_is_idempotent(self, paired):
        assert revoke_refresh_token(paired["refreshToken"]) is True
        assert revoke_refresh_token(paired["refreshToken"]) is False
        assert revoke_refresh_token("unknown") is False

    def test_revoked_record_is_kept(self, paired):
        revoke_refresh_token(paired["refreshToken"])

        row = storage.get_session().query(RefreshToken).one()
        assert row.revoked_at is not None

    def test_access_token_outlives_revocation_until_expiry(self, paired, clock):
        revoke_refresh_token(paired["refreshToken"])

        assert authenticate(f"Bearer {paired['accessToken']}") is not None
        clock.advance(minutes=15)
        assert authenticate(f"Bearer {paired['accessToken']}") is None


class TestAuthenticate:

    def test_bearer_access_token(self, app):
        token = create_access_token("user-1", "device-1")

        assert authenticate(f"Bearer {token}") == {"userId": "user-1", "deviceId": "device-1"}

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer ", "Basic dXNlcjpwYXNz", "Token abc"])
    def test_anonymous(self, app, header):
        assert authenticate(header) is None

    def test_scheme_is_case_sensitive(self, app):
        token = create_access_token("user-1", "device-1")

        assert authenticate(f"bearer {token}") is None

    def test_garbage_token(self, app):
        assert authenticate("Bearer not-a-token") is None


@pytest.mark.parametrize(
    "user_agent,expected",
    [
        ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)", "iPhone"),
        ("Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X)", "iPad"),
        ("Mozilla/5.0 (Linux; Android 14; Pixel 8)", "Android Device"),
        ("Expo/2.31.0 CFNetwork", "Expo App"),
        ("curl/8.4.0", "Mobile Device"),
        (None, "Mobile Device"),
    ],
)
def test_parse_device_name(user_agent, expected):
    assert parse_device_name(user_agent) == expected
