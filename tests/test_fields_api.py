def _create(client, key="warranty", **kw):
    payload = {"field_key": key, "label": key.replace("_", " ").title(), "type": "text", "module": "stock", **kw}
    return client.post("/fields", json=payload)


def test_root_and_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "stock" in r.json()["modules"]

    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert health["database"] == "sqlite"


def test_create_get_and_list(client):
    r = _create(client, validation_rules={"required": True})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["field_key"] == "warranty"
    assert body["validation_rules"]["required"] is True

    assert client.get("/fields/warranty").json()["id"] == body["id"]
    keys = [f["field_key"] for f in client.get("/fields", params={"module": "stock"}).json()]
    assert keys == ["warranty"]


def test_duplicate_key_is_conflict(client):
    _create(client)
    r = _create(client)
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "DUPLICATE_KEY"
    assert r.json()["detail"]["field_key"] == "warranty"


def test_unknown_field(client):
    r = client.get("/fields/nope")
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "UNKNOWN_FIELD"


def test_bad_key_and_invalid_patch_are_422(client):
    assert _create(client, key="Bad Key").status_code == 422

    _create(client)
    r = client.patch("/fields/warranty", json={"type": "select"})
    assert r.status_code == 422
    assert client.get("/fields/warranty").json()["type"] == "text"


def test_patch_and_immutability(client):
    _create(client)
    r = client.patch("/fields/warranty", json={"label": "Guarantee"})
    assert r.status_code == 200
    assert r.json()["label"] == "Guarantee"

    client.put("/entities/product/1/custom-fields", json={"values": {"warranty": "2y"}})

    r = client.patch("/fields/warranty", json={"type": "number"})
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "IMMUTABLE_FIELD"


def test_system_field_protected(client):
    _create(client, key="notes", is_system_field=True)

    r = client.post("/fields/notes/deactivate")
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "SYSTEM_FIELD_PROTECTED"
    assert client.delete("/fields/notes").status_code == 409


def test_deactivate(client):
    _create(client)
    r = client.post("/fields/warranty/deactivate")
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    assert client.get("/fields", params={"module": "stock"}).json() == []
    assert len(client.get("/fields", params={"module": "stock", "include_inactive": True}).json()) == 1


def test_delete_in_use_then_cascade(client):
    _create(client)
    client.put("/entities/product/1/custom-fields", json={"values": {"warranty": "2y"}})

    r = client.delete("/fields/warranty")
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "FIELD_IN_USE"

    assert client.delete("/fields/warranty", params={"cascade": True}).status_code == 204
    assert client.get("/entities/product/1/custom-fields").json() == {}


def test_dependencies(client):
    _create(client)
    rule = {"depends_on_field_key": "category", "condition_type": "equals", "condition_value": "electronics", "action": "show"}

    r = client.post("/fields/warranty/dependencies", json=rule)
    assert r.status_code == 201, r.text
    dep_id = r.json()["id"]

    listed = client.get("/fields/warranty/dependencies").json()
    assert [d["id"] for d in listed] == [dep_id]

    assert client.delete(f"/fields/dependencies/{dep_id}").status_code == 204
    r = client.delete(f"/fields/dependencies/{dep_id}")
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "DEPENDENCY_NOT_FOUND"


def test_bad_condition_type_rejected(client):
    _create(client)
    rule = {"depends_on_field_key": "category", "condition_type": "matches", "action": "show"}
    assert client.post("/fields/warranty/dependencies", json=rule).status_code == 422


def test_audit_trail(client):
    _create(client)
    client.patch("/fields/warranty", json={"label": "Guarantee"})

    events = client.get("/audit", params={"entity_type": "field_definition"}).json()
    assert [e["action"] for e in events] == ["FIELD_DEFINITION_UPDATED", "FIELD_DEFINITION_CREATED"]
    assert events[0]["metadata"]["changed"] == ["label"]


def test_key_generated_from_label(client):
    r = client.post("/fields", json={"label": "Garanti Süresi", "type": "number", "module": "stock"})
    assert r.status_code == 201, r.text
    assert r.json()["field_key"] == "garanti_suresi"

    client.put("/entities/product/1/custom-fields", json={"values": {"garanti_suresi": 24}})
    display = client.get("/entities/product/1/custom-fields/display").json()
    assert display["garanti_suresi"]["display"] == "24"


def test_audit_filters(client):
    _create(client, owner_id=42)
    _create(client, key="serial")

    events = client.get("/audit", params={"action": "FIELD_DEFINITION_CREATED", "actor_owner_id": 42}).json()
    assert [e["metadata"]["field_key"] for e in events] == ["warranty"]
    assert client.get("/audit", params={"limit": 0}).status_code == 422
