import pytest

from wellcare.errors import AccessDenied


@pytest.fixture
def history(services, people):
    pat = people["patient"]
    services.alerting.record_vital(pat["id"], systolic=120, diastolic=80, timestamp=None)
    services.alerting.record_vital(pat["id"], systolic=150, diastolic=95)
    med = services.journal.add_medication(pat["id"], "Lisinopril", "10mg", "daily")
    services.journal.log_dose(pat["id"], med["id"])
    return pat


def test_self_access_needs_no_consent(services, history):
    gate, pat = services.gate, history
    assert len(gate.vitals(pat["id"], pat["id"])) == 2
    assert len(gate.vitals(pat["id"])) == 2
    assert len(gate.medications(pat["id"], pat["id"])) == 1
    assert len(gate.dose_logs(pat["id"], pat["id"])) == 1
    assert len(gate.alerts(pat["id"], pat["id"])) == 1


@pytest.mark.parametrize("read", ["vitals", "medications", "dose_logs", "alerts"])
def test_no_grant_is_access_denied(services, people, history, read):
    with pytest.raises(AccessDenied):
        getattr(services.gate, read)(people["carol"]["id"], history["id"])


def test_unknown_target_is_access_denied_not_not_found(services, people):
    with pytest.raises(AccessDenied):
        services.gate.vitals(people["carol"]["id"], "usr_doesnotexist")


@pytest.mark.parametrize("level", ["view", "full"])
def test_either_level_may_read(services, people, history, level):
    carol = people["carol"]
    services.ledger.grant(history["id"], carol["email"], level)
    vitals = services.gate.vitals(carol["id"], history["id"])
    assert [v["systolic"] for v in vitals] == [150, 120]


def test_grant_is_one_directional(services, people, history):
    carol = people["carol"]
    services.ledger.grant(history["id"], carol["email"], "full")
    with pytest.raises(AccessDenied):
        services.gate.vitals(history["id"], carol["id"])


def test_revoked_grant_denies_again(services, people, history):
    carol = people["carol"]
    services.ledger.grant(history["id"], carol["email"], "view")
    services.ledger.revoke(history["id"], carol["email"])
    with pytest.raises(AccessDenied):
        services.gate.alerts(carol["id"], history["id"])


def test_acknowledging_needs_full_access(services, people, history):
    carol, cody = people["carol"], people["cody"]
    services.ledger.grant(history["id"], carol["email"], "view")
    services.ledger.grant(history["id"], cody["email"], "full")

    with pytest.raises(AccessDenied):
        services.gate.authorize_full(carol["id"], history["id"])
    assert services.gate.authorize_full(cody["id"], history["id"]) == history["id"]
    assert services.gate.authorize_full(history["id"], history["id"]) == history["id"]
