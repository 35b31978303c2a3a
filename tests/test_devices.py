"""Unit tests for trusted devices (mfa/devices.py)"""
from datetime import datetime, timedelta, timezone

import pytest

from mfa_core.mfa.devices import (
    FINGERPRINT_SEPARATOR,
    TrustedDeviceRegistry,
    describe_device,
    fingerprint_components,
)
from mfa_core.schema import DeviceSignals

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.0.0"
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def signals():
    return DeviceSignals(
        user_agent=CHROME_WINDOWS,
        language="en-US",
        hardware_concurrency=8,
        max_touch_points=0,
        screen_width=1920,
        screen_height=1080,
        color_depth=24,
        timezone_offset=-60,
        session_storage=True,
        local_storage=True,
        platform="Win32",
    )


@pytest.fixture
def registry(store, cipher):
    return TrustedDeviceRegistry(store, cipher, ttl_days=30)


@pytest.mark.unit
class TestFingerprint:
    """Test device fingerprint derivation"""

    def test_component_order(self, signals):
        assert fingerprint_components(signals) == [
            CHROME_WINDOWS, "en-US", "8", "0", "1920", "1080", "24", "-60",
            "true", "true", "Win32",
        ]

    def test_missing_values_render_empty(self):
        components = fingerprint_components(DeviceSignals())
        assert components[2:8] == [""] * 6
        assert components[8:10] == ["false", "false"]

    def test_canvas_appended_when_present(self, signals):
        signals.canvas = "data:image/png;base64,AAAA"
        components = fingerprint_components(signals)

        assert len(components) == 12
        assert components[-1] == "data:image/png;base64,AAAA"

    def test_deterministic(self, registry, signals):
        assert registry.fingerprint(signals) == registry.fingerprint(signals.model_copy())

    def test_hash_of_joined_components(self, registry, signals, cipher):
        joined = FINGERPRINT_SEPARATOR.join(fingerprint_components(signals))
        assert registry.fingerprint(signals) == cipher.hash(joined)

    def test_changes_with_signals(self, registry, signals):
        other = signals.model_copy(update={"screen_width": 1280})
        assert registry.fingerprint(signals) != registry.fingerprint(other)


@pytest.mark.unit
class TestRegistry:
    """Test add / trust / remove lifecycle"""

    def test_added_device_is_trusted(self, registry):
        registry.add("user-1", "fp-1", "Work laptop", now=T0)
        assert registry.is_trusted("user-1", "fp-1", now=T0 + timedelta(minutes=1)) is True

    def test_add_sets_expiry(self, registry):
        device = registry.add("user-1", "fp-1", "Work laptop", now=T0)

        assert device.added_at == T0
        assert device.expires_at == T0 + timedelta(days=30)

    def test_custom_ttl(self, registry):
        device = registry.add("user-1", "fp-1", "Phone", ttl_days=7, now=T0)
        assert device.expires_at == T0 + timedelta(days=7)

    def test_zero_ttl_expires_immediately(self, registry):
        device = registry.add("user-1", "fp-1", "Kiosk", ttl_days=0, now=T0)

        assert device.expires_at == T0
        assert registry.is_trusted("user-1", "fp-1", now=T0) is False

    def test_expired_device_is_not_trusted(self, registry):
        registry.add("user-1", "fp-1", "Work laptop", now=T0)

        assert registry.is_trusted("user-1", "fp-1", now=T0 + timedelta(days=31)) is False

    def test_expiry_boundary_is_exclusive(self, registry):
        registry.add("user-1", "fp-1", "Work laptop", now=T0)
        assert registry.is_trusted("user-1", "fp-1", now=T0 + timedelta(days=30)) is False

    def test_unknown_fingerprint(self, registry):
        registry.add("user-1", "fp-1", "Work laptop", now=T0)
        assert registry.is_trusted("user-1", "fp-2", now=T0) is False

    def test_non_ascii_fingerprint(self, registry):
        registry.add("user-1", "fp-1", "Work laptop", now=T0)
        assert registry.is_trusted("user-1", "fpé", now=T0) is False

    def test_devices_scoped_per_user(self, registry):
        registry.add("user-1", "fp-1", "Work laptop", now=T0)
        assert registry.is_trusted("user-2", "fp-1", now=T0) is False

    def test_duplicate_adds_kept(self, registry):
        registry.add("user-1", "fp-1", "Laptop", now=T0)
        registry.add("user-1", "fp-1", "Laptop again", now=T0 + timedelta(days=1))

        assert len(registry.list_devices("user-1", now=T0 + timedelta(days=2))) == 2

    def test_renewed_record_keeps_device_trusted(self, registry):
        registry.add("user-1", "fp-1", "Laptop", now=T0)
        registry.add("user-1", "fp-1", "Laptop", now=T0 + timedelta(days=20))

        assert registry.is_trusted("user-1", "fp-1", now=T0 + timedelta(days=40)) is True

    def test_remove_deletes_all_matching(self, registry):
        registry.add("user-1", "fp-1", "Laptop", now=T0)
        registry.add("user-1", "fp-1", "Laptop", now=T0 - timedelta(days=60))
        registry.add("user-1", "fp-2", "Phone", now=T0)

        assert registry.remove("user-1", "fp-1") == 2
        assert registry.is_trusted("user-1", "fp-1", now=T0) is False
        assert registry.is_trusted("user-1", "fp-2", now=T0) is True

    def test_remove_unknown(self, registry):
        assert registry.remove("user-1", "fp-1") == 0

    def test_list_hides_expired_by_default(self, registry):
        registry.add("user-1", "fp-old", "Old", now=T0 - timedelta(days=60))
        registry.add("user-1", "fp-new", "New", now=T0)

        active = registry.list_devices("user-1", now=T0)
        everything = registry.list_devices("user-1", now=T0, include_expired=True)

        assert [d.fingerprint for d in active] == ["fp-new"]
        assert len(everything) == 2

    def test_purge_expired(self, registry):
        registry.add("user-1", "fp-old", "Old", now=T0 - timedelta(days=60))
        registry.add("user-1", "fp-new", "New", now=T0)

        assert registry.purge_expired("user-1", now=T0) == 1
        assert [d.fingerprint for d in registry.list_devices("user-1", include_expired=True)] == ["fp-new"]


@pytest.mark.unit
class TestDescribeDevice:
    """Test display labels derived from the user agent"""

    @pytest.mark.parametrize("user_agent,browser,os_name,device_type", [
        (CHROME_WINDOWS, "Chrome", "Windows", "Desktop"),
        (EDGE_WINDOWS, "Edge", "Windows", "Desktop"),
        (SAFARI_IPHONE, "Safari", "iOS", "Mobile"),
        (FIREFOX_LINUX, "Firefox", "Linux", "Desktop"),
        ("curl/8.0", "Unknown", "Unknown", "Desktop"),
    ])
    def test_describe(self, user_agent, browser, os_name, device_type):
        info = describe_device(user_agent)

        assert info.browser == browser
        assert info.os == os_name
        assert info.device_type == device_type
