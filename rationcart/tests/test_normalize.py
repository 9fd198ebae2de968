from rationcart.normalize import extract_items, normalize_line, normalize_name, parse_quantity_unit


def test_hindi_atta_with_quantity():
    n = normalize_line("आटा 5 किलो")

    assert n is not None
    assert n.raw_text == "आटा 5 किलो"
    assert n.quantity == "5"
    assert n.unit == "kg"
    assert n.normalized_name == "wheat flour"


def test_english_line_unit_first():
    n = normalize_line("2 kg Sugar")
    assert n.quantity == "2"
    assert n.unit == "kg"
    assert n.normalized_name == "sugar"


def test_unit_glued_to_number():
    n = normalize_line("Paneer 200g")
    assert n.quantity == "200"
    assert n.unit == "g"
    assert n.normalized_name == "paneer"


def test_devanagari_digits():
    n = normalize_line("चावल ५ किलो")
    assert n.quantity == "5"
    assert n.unit == "kg"
    assert n.normalized_name == "rice"


def test_millilitres_become_litres():
    n = normalize_line("तेल 500 ml")
    assert n.quantity == "0.5"
    assert n.unit == "ltr"
    assert n.normalized_name == "oil"


def test_bare_number_keeps_default_unit():
    n = normalize_line("अंडे 12")
    assert n.quantity == "12"
    assert n.unit == "pack"
    assert n.normalized_name == "eggs"


def test_defaults_without_quantity():
    n = normalize_line("Toor Dal")
    assert n.quantity == "1"
    assert n.unit == "pack"
    assert n.normalized_name == "lentils"


def test_specific_term_wins_over_generic():
    assert normalize_name("besan") == "gram flour"
    assert normalize_name("chana dal") == "chickpea"


def test_per_word_fallback():
    assert normalize_name("toma") == "tomato"


def test_unknown_item_is_stripped_of_punctuation():
    n = normalize_line("Maggi Noodles!! 2 packet")
    assert n.quantity == "2"
    assert n.unit == "pack"
    assert n.normalized_name == "maggi noodles"


def test_parse_quantity_unit_without_number():
    assert parse_quantity_unit("namak") == (None, None, "namak")


def test_digit_only_and_short_lines_are_dropped():
    assert extract_items("12\n5\n\na\n  \n7") == []


def test_line_with_only_a_quantity_is_dropped():
    assert extract_items("5 kg") == []


def test_empty_input():
    assert extract_items("") == []
    assert extract_items(None) == []


def test_order_follows_input():
    text = "दूध 2 लीटर\nrice 10 kg\n42\nनमक 1 पैकेट\n"
    items = extract_items(text)
    assert [i.normalized_name for i in items] == ["milk", "rice", "salt"]
    assert [i.unit for i in items] == ["ltr", "kg", "pack"]


def test_latin_terms_match_whole_words():
    assert normalize_line("yogurt 1 kg").normalized_name == "yogurt"
    assert normalize_line("mysore sandal soap 2 pack").normalized_name == "soap"
    assert normalize_name("hotel") == "hotel"


def test_latin_inflections_still_match():
    assert normalize_name("eggs") == "eggs"
    assert normalize_name("potatoes") == "potato"
    assert normalize_name("mustard tel") == "oil"
