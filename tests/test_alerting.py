import pytest

from wellcare.alerting import classify


@pytest.mark.parametrize("systolic, diastolic, expected", [
    (139, 89, None),
    (140, 89, "warning"),
    (139, 90, "warning"),
    (159, 99, "warning"),
    (160, 0, "critical"),
    (0, 100, "critical"),
    (120, 80, None),
])
def test_threshold_boundaries(systolic, diastolic, expected):
    assert classify(systolic, diastolic) == expected


def test_normal_reading_raises_no_alert(services, people):
    pat = people["patient"]
    result = services.alerting.record_vital(pat["id"], systolic=118, diastolic=76)
    assert result["alert"] is None
    assert result["vital"]["systolic"] == 118
    assert services.alerting.alerts(pat["id"]) == []


def test_high_reading_raises_alert_linked_to_vital(services, people):
    pat = people["patient"]
    result = services.alerting.record_vital(pat["id"], systolic=145, diastolic=92, pulse=80)

    alert = result["alert"]
    assert alert["severity"] == "warning"
    assert alert["ownerId"] == pat["id"]
    assert alert["relatedVitalId"] == result["vital"]["id"]
    assert alert["read"] is False
    assert "145/92" in alert["message"]
    assert services.alerting.alerts(pat["id"]) == [alert]


def test_fan_out_one_notification_per_grantee(services, people):
    ledger, alerting = services.ledger, services.alerting
    pat, carol, cody, doc = people["patient"], people["carol"], people["cody"], people["doc"]
    ledger.grant(pat["id"], carol["email"], "view")
    ledger.grant(pat["id"], cody["email"], "full")

    alert = alerting.record_vital(pat["id"], systolic=165, diastolic=95)["alert"]

    notes = services.store.scan_by_prefix("notification:")
    assert len(notes) == 2
    assert {n["recipientId"] for n in notes} == {carol["id"], cody["id"]}
    assert {n["alertId"] for n in notes} == {alert["id"]}
    assert all(n["patientId"] == pat["id"] and n["read"] is False for n in notes)
    assert alerting.notifications(doc["id"]) == []


def test_fan_out_failure_is_isolated_per_recipient(services, people, monkeypatch):
    ledger, alerting = services.ledger, services.alerting
    pat, carol, cody = people["patient"], people["carol"], people["cody"]
    ledger.grant(pat["id"], carol["email"], "view")
    ledger.grant(pat["id"], cody["email"], "view")

    real_write = alerting._write_notification

    def failing_for_carol(recipient_id, patient_id, alert):
        if recipient_id == carol["id"]:
            raise RuntimeError("mailbox down")
        return real_write(recipient_id, patient_id, alert)

    monkeypatch.setattr(alerting, "_write_notification", failing_for_carol)
    result = alerting.record_vital(pat["id"], systolic=170, diastolic=110)

    assert result["alert"]["severity"] == "critical"
    assert alerting.notifications(carol["id"]) == []
    assert [n["alertId"] for n in alerting.notifications(cody["id"])] == [result["alert"]["id"]]
    assert len(alerting.alerts(pat["id"])) == 1


def test_fan_out_survives_ledger_failure(services, people, monkeypatch):
    pat = people["patient"]

    def broken(patient_id):
        raise RuntimeError("scan failed")

    monkeypatch.setattr(services.ledger, "list_grants_by_patient", broken)
    result = services.alerting.record_vital(pat["id"], systolic=150, diastolic=80)
    assert result["alert"]["severity"] == "warning"


def test_mark_notification_read_is_scoped_to_recipient(services, people):
    from wellcare.errors import NotFound

    ledger, alerting = services.ledger, services.alerting
    pat, carol, cody = people["patient"], people["carol"], people["cody"]
    ledger.grant(pat["id"], carol["email"], "view")
    alerting.record_vital(pat["id"], systolic=150, diastolic=80)
    note = alerting.notifications(carol["id"])[0]

    with pytest.raises(NotFound):
        alerting.mark_notification_read(cody["id"], note["id"])
    assert alerting.mark_notification_read(carol["id"], note["id"])["read"] is True
    assert alerting.notifications(carol["id"], unread_only=True) == []


def test_thresholds_ignore_app_config(app, client, signup):
    app.config.update(ALERT_WARNING_SYSTOLIC=100, ALERT_CRITICAL_SYSTOLIC=120)
    headers, _ = signup("pat@example.com")

    normal = client.post("/vitals", headers=headers, json={"systolic": 130, "diastolic": 85})
    assert normal.status_code == 201
    assert normal.get_json()["alert"] is None

    high = client.post("/vitals", headers=headers, json={"systolic": 140, "diastolic": 85})
    assert high.get_json()["alert"]["severity"] == "warning"
