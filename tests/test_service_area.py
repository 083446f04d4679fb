from shipping_engine.models.domain import Location, ServiceArea, ShippingConfig
from shipping_engine.services.shipping.service_area import is_serviceable, match_service_area


def _config(areas) -> ShippingConfig:
    return ShippingConfig(
        vendor_id="V1",
        origin=Location(latitude=12.97, longitude=77.59),
        service_areas=areas,
    )


def test_empty_service_areas_do_not_restrict():
    config = _config([])

    assert is_serviceable(config, "560001")
    assert is_serviceable(config, "110001")
    assert match_service_area(config, "560001") is None


def test_listed_postal_code_is_serviceable():
    config = _config([ServiceArea("560001"), ServiceArea("560034", custom_rate=30.0, area="Koramangala")])

    assert is_serviceable(config, "560034")
    assert match_service_area(config, "560034").custom_rate == 30.0


def test_unlisted_postal_code_is_rejected():
    config = _config([ServiceArea("560001")])

    assert not is_serviceable(config, "560002")
    assert not is_serviceable(config, None)


def test_match_is_exact():
    config = _config([ServiceArea("560001")])

    assert match_service_area(config, "56000") is None
    assert match_service_area(config, "5600011") is None
