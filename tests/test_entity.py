"""Tests for the server set member record."""

import json

import pytest

from serversets.entity import Endpoint, Entity, Status, new_entity
from serversets.errors import MemberDataError


class TestNewEntity:
    """Tests for new_entity and serialization."""

    def test_defaults(self):
        entity = new_entity("10.0.0.5", 8080)
        assert entity.service_endpoint == Endpoint("10.0.0.5", 8080)
        assert entity.additional_endpoints == {}
        assert entity.shard == 0
        assert entity.status is Status.ALIVE

    def test_exact_wire_format(self):
        entity = new_entity("10.0.0.5", 8080)
        assert entity.to_json() == (
            '{"serviceEndpoint":{"host":"10.0.0.5","port":8080},'
            '"additionalEndpoints":{},"shard":0,"status":"ALIVE"}'
        )

    def test_additional_endpoints_never_null(self):
        data = json.loads(new_entity("h", 1).to_bytes())
        assert "additionalEndpoints" in data
        assert data["additionalEndpoints"] == {}

    def test_additional_endpoints_serialized(self):
        entity = new_entity("h", 8080)
        entity.additional_endpoints["http"] = Endpoint("h", 8081)
        data = entity.to_dict()
        assert data["additionalEndpoints"] == {"http": {"host": "h", "port": 8081}}

    def test_no_validation(self):
        entity = new_entity("", -1)
        assert entity.to_dict()["serviceEndpoint"] == {"host": "", "port": -1}

    def test_fresh_additional_endpoints_per_entity(self):
        a = new_entity("a", 1)
        b = new_entity("b", 2)
        a.additional_endpoints["x"] = Endpoint("a", 3)
        assert b.additional_endpoints == {}


class TestEntityParsing:
    """Tests for reading payloads written by other producers."""

    def test_from_json_bytes(self):
        payload = (
            b'{"serviceEndpoint":{"host":"10.0.0.5","port":8080},'
            b'"additionalEndpoints":{"admin":{"host":"10.0.0.5","port":9990}},'
            b'"shard":3,"status":"STARTING"}'
        )
        entity = Entity.from_json(payload)
        assert entity.service_endpoint == Endpoint("10.0.0.5", 8080)
        assert entity.additional_endpoints == {"admin": Endpoint("10.0.0.5", 9990)}
        assert entity.shard == 3
        assert entity.status is Status.STARTING

    def test_missing_optional_fields(self):
        entity = Entity.from_json('{"serviceEndpoint":{"host":"h","port":1},"status":"ALIVE"}')
        assert entity.additional_endpoints == {}
        assert entity.shard == 0

    def test_null_additional_endpoints(self):
        entity = Entity.from_json(
            '{"serviceEndpoint":{"host":"h","port":1},"additionalEndpoints":null}'
        )
        assert entity.additional_endpoints == {}

    def test_unknown_status(self):
        entity = Entity.from_json('{"serviceEndpoint":{"host":"h","port":1},"status":"BOGUS"}')
        assert entity.status is Status.UNKNOWN

    @pytest.mark.parametrize("payload", [
        b"",
        b"not json",
        b"[1, 2]",
        b'{"status":"ALIVE"}',
        b'{"serviceEndpoint":{"host":"h","port":"eighty"}}',
    ])
    def test_malformed(self, payload):
        with pytest.raises(MemberDataError):
            Entity.from_json(payload)

    def test_invalid_utf8(self):
        payload = b'{"serviceEndpoint":{"host":"\xff\xfe","port":1}}'
        with pytest.raises(MemberDataError):
            Entity.from_json(payload)

    def test_all_statuses_known(self):
        names = {s.value for s in Status}
        assert names == {"DEAD", "STARTING", "ALIVE", "STOPPING", "STOPPED", "WARNING", "UNKNOWN"}

    def test_endpoint_str(self):
        assert str(Endpoint("10.0.0.5", 8080)) == "10.0.0.5:8080"
