import pytest

from synthient.models import AnonymizersQuery, Device, IpRecord, Location, Network


def test_ip_record_from_minimal_payload():
    record = IpRecord.from_dict({"ip": "8.8.8.8", "ip_data": {"ip_risk": 10}})

    assert record.ip == "8.8.8.8"
    assert record.ip_data.ip_risk == 10
    assert record.network == Network()
    assert record.location == Location()
    assert record.ip_data.behavior == ()
    assert record.ip_data.device_count == 0


def test_ip_record_ignores_unknown_keys():
    record = IpRecord.from_dict(
        {
            "ip": "1.1.1.1",
            "unknown": True,
            "network": {"asn": 13335, "isp": "Cloudflare", "extra": "x"},
            "ip_data": {"devices": [{"os": "Linux", "version": "6", "arch": "x86"}]},
        }
    )

    assert record.network.asn == 13335
    assert record.network.isp == "Cloudflare"
    assert record.ip_data.devices == (Device(os="Linux", version="6"),)


def test_ip_record_accepts_integral_floats():
    record = IpRecord.from_dict({"network": {"asn": 15169.0}, "location": {"latitude": 37}})

    assert record.network.asn == 15169
    assert record.location.latitude == 37.0


@pytest.mark.parametrize(
    "payload",
    [
        [],
        "8.8.8.8",
        {"ip": 8},
        {"network": "google"},
        {"network": {"asn": "AS15169"}},
        {"network": {"asn": 1.5}},
        {"ip_data": {"behavior": "SCANNER"}},
        {"ip_data": {"devices": ["windows"]}},
        {"ip_data": {"ip_risk": True}},
    ],
)
def test_ip_record_rejects_wrong_shapes(payload):
    with pytest.raises((TypeError, ValueError)):
        IpRecord.from_dict(payload)


def test_ip_record_to_dict_is_json_friendly():
    record = IpRecord.from_dict(
        {"ip": "8.8.8.8", "ip_data": {"categories": ["VPN"], "enriched": [{"provider": "P"}]}}
    )

    data = record.to_dict()

    assert data["ip"] == "8.8.8.8"
    assert list(data["ip_data"]["categories"]) == ["VPN"]
    assert data["ip_data"]["enriched"][0] == {"provider": "P", "type": "", "last_seen": ""}


def test_query_omits_unset_filters():
    query = AnonymizersQuery(type="RESIDENTIAL_PROXY", last_observed="7D")

    assert query.to_params() == {
        "type": "RESIDENTIAL_PROXY",
        "last_observed": "7D",
        "full": "false",
        "format": "CSV",
        "order": "desc",
    }


def test_query_treats_empty_string_as_unset():
    query = AnonymizersQuery(provider="", type=None, country_code="")

    assert set(query.to_params()) == {"full", "format", "order"}


@pytest.mark.parametrize("full, expected", [(True, "true"), (False, "false")])
def test_query_full_flag_text(full, expected):
    assert AnonymizersQuery(full=full).to_params()["full"] == expected


def test_query_all_fields():
    query = AnonymizersQuery(
        provider="BIRDPROXIES",
        type="RESIDENTIAL_PROXY",
        last_observed="7D",
        country_code="US",
        format="JSON",
        full=True,
        order="asc",
    )

    assert list(query.to_params().items()) == [
        ("provider", "BIRDPROXIES"),
        ("type", "RESIDENTIAL_PROXY"),
        ("last_observed", "7D"),
        ("country_code", "US"),
        ("full", "true"),
        ("format", "JSON"),
        ("order", "asc"),
    ]
