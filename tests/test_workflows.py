# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end workflow tests using in-memory doubles."""

from __future__ import annotations

import pytest
from conftest import PRIVATE_A, PUBLIC_A, PUBLIC_B, FakeOpenSSLRunner, FakeResponse, FakeSession, FakeStore, keys_payload, repo
from pydantic import SecretStr

from jpdctl.config import Settings
from jpdctl.constants import ACCESS_PING_PATH, ARTIFACTORY_PING_PATH, TRUSTED_KEYS_PATH
from jpdctl.errors import InputError, KeyMaterialError
from jpdctl.keys import KeyMaterialProvider, LocalCryptoKeySource, OpenSSL
from jpdctl.platform import PlatformClient, PublishAction
from jpdctl.workflows import (
    ConfigCleaner,
    EvidenceKeyUpdater,
    PlatformSwitcher,
    ServiceConfigurator,
    SetupMode,
    WorkflowOptions,
    detect_setup_mode,
    platform_items,
    service_items,
)

URL = "https://acme.jfrog.io"


def _healthy_session(routes: dict | None = None) -> FakeSession:
    base = {
        ("GET", ARTIFACTORY_PING_PATH): [FakeResponse(200, "OK")],
        ("GET", ACCESS_PING_PATH): [FakeResponse(200, "OK")],
        ("GET", "acme.jfrog.io"): [FakeResponse(200)],
    }
    base.update(routes or {})
    return FakeSession(base)


def _settings(*, continue_on_auth_failure: bool = False, **keys) -> Settings:
    return Settings.model_validate(
        {
            "platform": {
                "url": URL,
                "admin_token": "admin-token-value",
                "continue_on_auth_failure": continue_on_auth_failure,
            },
            "distribution": {"project_key": "bookverse"},
            "keys": keys,
        }
    )


def _provider(runner: FakeOpenSSLRunner) -> KeyMaterialProvider:
    return KeyMaterialProvider(openssl=OpenSSL(runner=runner), use_emoji=False)


def _options(sleeps, *, dry_run: bool = False) -> WorkflowOptions:
    return WorkflowOptions(dry_run=dry_run, use_emoji=False, sleep=sleeps)


def _switcher(settings, store, session, sleeps, *, generate=False, dry_run=False, runner=None) -> PlatformSwitcher:
    runner = runner or FakeOpenSSLRunner()
    client = PlatformClient(settings.platform.target(), session=session)
    return PlatformSwitcher(
        settings,
        store=store,
        client=client,
        candidates=[repo("a"), repo("b")],
        provider=_provider(runner),
        source_factory=lambda: LocalCryptoKeySource(OpenSSL(runner=runner), tool_check=lambda name: True),
        generate_keys=generate,
        options=_options(sleeps, dry_run=dry_run),
    )


@pytest.mark.parametrize(
    ("current", "expected"),
    [(None, SetupMode.INITIAL), ("https://old.jfrog.io", SetupMode.SWITCH), (f"{URL}/", SetupMode.REFRESH)],
)
def test_setup_mode_detection(current, expected) -> None:
    store = FakeStore()
    if current is not None:
        store.variables[("org/a", "JFROG_URL")] = current

    mode, previous = detect_setup_mode(store, repo("a"), URL)

    assert mode is expected
    assert store.writes() == []


def test_platform_items_put_secrets_first(platform) -> None:
    items = platform_items(platform, project_key="bookverse")

    assert [item.name for item in items] == ["JFROG_ADMIN_TOKEN", "JFROG_URL", "DOCKER_REGISTRY", "PROJECT_KEY"]
    assert items[0].is_secret
    assert items[2].value == "acme.jfrog.io"
    assert items[0].display_value == "***"


def test_switch_distributes_platform_configuration(sleeps) -> None:
    store = FakeStore({"org/a", "org/b"})
    store.variables[("org/a", "JFROG_URL")] = "https://old.jfrog.io"

    report = _switcher(_settings(), store, _healthy_session(), sleeps).run()

    assert report.mode is SetupMode.SWITCH
    assert report.previous_url == "https://old.jfrog.io"
    assert report.result.exit_code() == 0
    assert store.secrets[("org/b", "JFROG_ADMIN_TOKEN")] == "admin-token-value"
    assert store.variables[("org/b", "DOCKER_REGISTRY")] == "acme.jfrog.io"
    assert report.keys is None


def test_switch_with_generated_keys_publishes_then_distributes(sleeps) -> None:
    store = FakeStore({"org/a", "org/b"})
    session = _healthy_session(
        {
            ("POST", TRUSTED_KEYS_PATH): [FakeResponse(201)],
            ("GET", TRUSTED_KEYS_PATH): [FakeResponse(200, keys_payload(("bookverse-signing-key", "K")))],
        }
    )

    report = _switcher(_settings(), store, session, sleeps, generate=True).run()

    assert report.published is not None and report.published.action is PublishAction.CREATED
    assert store.secrets[("org/a", "EVIDENCE_PRIVATE_KEY")] == PRIVATE_A
    assert store.variables[("org/a", "EVIDENCE_PUBLIC_KEY")] == PUBLIC_A
    assert store.variables[("org/a", "EVIDENCE_KEY_ALIAS")] == "bookverse-signing-key"


def test_mismatched_keys_abort_before_any_repository_is_touched(sleeps) -> None:
    store = FakeStore({"org/a", "org/b"})
    settings = _settings(private_key=PRIVATE_A, public_key=PUBLIC_B)

    with pytest.raises(KeyMaterialError):
        _switcher(settings, store, _healthy_session(), sleeps).run()

    assert store.calls == []


def test_switch_dry_run_writes_nothing(sleeps) -> None:
    store = FakeStore({"org/a", "org/b"})
    session = _healthy_session()

    report = _switcher(_settings(), store, session, sleeps, generate=True, dry_run=True).run()

    assert store.writes() == []
    assert session.count("POST") == 0
    assert report.keys is not None and report.keys.origin == "dry-run"
    assert report.result.exit_code() == 0


def _unauthorized_session() -> FakeSession:
    return _healthy_session(
        {
            ("GET", ARTIFACTORY_PING_PATH): [FakeResponse(401, "Unauthorized")],
            ("POST", TRUSTED_KEYS_PATH): [FakeResponse(401, "Unauthorized")],
        }
    )


def test_degraded_switch_skips_key_upload_and_still_distributes(sleeps, capsys) -> None:
    store = FakeStore({"org/a", "org/b"})
    session = _unauthorized_session()
    settings = _settings(continue_on_auth_failure=True)

    report = _switcher(settings, store, session, sleeps, generate=True).run()

    assert report.health.degraded
    assert report.published is None
    assert session.count("POST") == 0
    assert report.result.exit_code() == 0
    assert store.variables[("org/b", "EVIDENCE_PUBLIC_KEY")] == PUBLIC_A
    assert "Skipping trusted key upload" in capsys.readouterr().out


def test_degraded_evidence_update_skips_key_upload_and_still_distributes(sleeps) -> None:
    store = FakeStore({"org/a"})
    session = _unauthorized_session()
    settings = _settings(continue_on_auth_failure=True, private_key=PRIVATE_A, public_key=PUBLIC_A)
    updater = EvidenceKeyUpdater(
        settings,
        store=store,
        client=PlatformClient(settings.platform.target(), session=session),
        candidates=[repo("a")],
        provider=_provider(FakeOpenSSLRunner()),
        source_factory=lambda: pytest.fail("no generation expected"),
        generate=False,
        options=_options(sleeps),
    )

    report = updater.run()

    assert report.published is None
    assert session.count("POST") == 0
    assert [ref.name for ref in report.result.succeeded_repositories] == ["a"]
    assert store.secrets[("org/a", "EVIDENCE_PRIVATE_KEY")] == PRIVATE_A
    pings = [call for call in session.calls if call[1].endswith(ARTIFACTORY_PING_PATH)]
    assert len(pings) == 1


def test_evidence_update_without_platform(sleeps) -> None:
    store = FakeStore({"org/a"})
    runner = FakeOpenSSLRunner()
    updater = EvidenceKeyUpdater(
        _settings(private_key=PRIVATE_A, public_key=PUBLIC_A),
        store=store,
        client=None,
        candidates=[repo("a"), repo("gone")],
        provider=_provider(runner),
        source_factory=lambda: pytest.fail("no generation expected"),
        generate=False,
        options=_options(sleeps),
    )

    report = updater.run()

    assert report.published is None
    assert [ref.name for ref in report.result.succeeded_repositories] == ["a"]
    assert store.variables[("org/a", "EVIDENCE_PUBLIC_KEY")] == PUBLIC_A


def test_evidence_update_requires_keys(sleeps) -> None:
    updater = EvidenceKeyUpdater(
        _settings(),
        store=FakeStore({"org/a"}),
        client=None,
        candidates=[repo("a")],
        provider=_provider(FakeOpenSSLRunner()),
        source_factory=lambda: pytest.fail("no generation expected"),
        generate=False,
        options=_options(sleeps),
    )

    with pytest.raises(InputError, match="No evidence keys"):
        updater.run()


def test_service_items_report_all_missing_values() -> None:
    settings = Settings.model_validate({"keys": {"alias": ""}})

    with pytest.raises(InputError) as excinfo:
        service_items(settings)

    assert str(excinfo.value).endswith("JFROG_URL, EVIDENCE_KEY_ALIAS, EVIDENCE_PRIVATE_KEY")


def test_services_configure_dispatch_token_and_tolerate_its_failure(sleeps) -> None:
    settings = _settings(private_key=PRIVATE_A)
    settings.distribution.dispatch_token = SecretStr("ghp_dispatch")

    class DispatchRejectingStore(FakeStore):
        def set_secret(self, repo_ref, name, value):
            if name == "GH_REPO_DISPATCH_TOKEN":
                self.reject_writes.add(repo_ref.full_name)
            super().set_secret(repo_ref, name, value)

    store = DispatchRejectingStore()
    report = ServiceConfigurator(
        settings,
        store=store,
        repositories=[repo("bookverse-platform"), repo("bookverse-web")],
        dispatch_repository=repo("bookverse-platform"),
        options=_options(sleeps),
    ).run()

    assert report.result.exit_code() == 0
    assert report.dispatch_token_configured is False
    assert store.variables[("org/bookverse-web", "DOCKER_REGISTRY")] == "acme.jfrog.io"


def test_cleanup_counts_removed_items_and_ignores_absent_ones() -> None:
    store = FakeStore()
    store.variables[("org/a", "JFROG_URL")] = URL
    store.variables[("org/a", "PROJECT_KEY")] = "bookverse"
    store.secrets[("org/b", "JFROG_ADMIN_TOKEN")] = "t"

    result = ConfigCleaner(store, use_emoji=False).run([repo("a"), repo("b")])

    assert (result.variables_removed, result.secrets_removed) == (2, 1)
    assert result.exit_code() == 0
    assert store.variables == {} and store.secrets == {}


def test_cleanup_dry_run_deletes_nothing() -> None:
    store = FakeStore()
    store.variables[("org/a", "JFROG_URL")] = URL

    result = ConfigCleaner(store, dry_run=True, use_emoji=False).run([repo("a")])

    assert result.variables_removed == 0
    assert store.calls == []
