from diner_radar.cuisine import DEFAULT_CUISINE, classify_cuisine, cuisine_vocabulary


def test_specific_tag_first_wins():
    assert classify_cuisine(["japanese_restaurant", "restaurant"]) == "Japanese"


def test_generic_tags():
    assert classify_cuisine(["restaurant", "food"]) == "Restaurant"


def test_tag_order_decides():
    assert classify_cuisine(["thai_restaurant", "italian_restaurant"]) == "Thai"
    assert classify_cuisine(["cafe", "thai_restaurant"]) == "Cafe"


def test_unknown_tags_fall_back():
    assert classify_cuisine(["point_of_interest", "establishment"]) == DEFAULT_CUISINE
    assert classify_cuisine([]) == DEFAULT_CUISINE


def test_steakhouse_spellings():
    assert classify_cuisine(["steak_house"]) == "Steakhouse"
    assert classify_cuisine(["steakhouse"]) == "Steakhouse"


def test_vocabulary_is_closed_and_unique():
    vocabulary = cuisine_vocabulary()
    assert len(vocabulary) == len(set(vocabulary))
    assert "Japanese" in vocabulary and "Restaurant" in vocabulary
