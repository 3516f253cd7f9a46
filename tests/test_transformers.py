from watermap.ingestion.transformers import element_to_facility, is_accessible, is_drinkable, water_source_type


def _node(tags: dict, **extra) -> dict:
    return {"type": "node", "id": 1, "lat": 56.95, "lon": 24.1, "tags": tags, **extra}


def test_drinkable_unless_explicitly_no():
    assert is_drinkable({"amenity": "drinking_water"}) is True
    assert is_drinkable({"man_made": "water_tap"}) is True
    assert is_drinkable({"amenity": "drinking_water", "drinking_water": "No"}) is False


def test_water_source_type_precedence():
    assert water_source_type({"amenity": "drinking_water", "man_made": "water_tap"}) == "drinking_water"
    assert water_source_type({"natural": "spring"}) == "spring"
    assert water_source_type({"man_made": "water_well"}) == "water_well"
    assert water_source_type({"man_made": "water_tap"}) == "water_tap"
    assert water_source_type({"waterway": "water_point"}) == "water_point"
    assert water_source_type({}) == "unknown"


def test_toilet_tags_are_normalized():
    facility = element_to_facility(
        _node(
            {
                "amenity": "toilets",
                "wheelchair": "Limited",
                "changing_table": "yes",
                "fee": "maybe",
                "opening_hours": "Mo-Fr 08:00-20:00",
                "unisex": "YES",
            }
        ),
        "toilet",
    )
    d = facility.details
    assert d.kind == "toilet"
    assert (d.wheelchair, d.changing_table, d.fee) == ("limited", "yes", "unknown")
    assert d.opening_hours == "Mo-Fr 08:00-20:00"
    assert d.unisex is True
    assert is_accessible(facility) is False


def test_toilet_defaults_when_untagged():
    facility = element_to_facility(_node({"amenity": "toilets", "wheelchair": "yes"}), "toilet")
    assert facility.details.opening_hours is None
    assert facility.details.unisex is None
    assert is_accessible(facility) is True


def test_water_facility_is_never_accessible_toilet():
    facility = element_to_facility(_node({"amenity": "drinking_water", "name": "Tap"}), "water")
    assert facility.id == "node/1"
    assert facility.name == "Tap"
    assert facility.layer == "water"
    assert is_accessible(facility) is False
