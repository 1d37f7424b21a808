from statement_import.field_mapping import (
    CANONICAL_FIELDS,
    detect_field_candidates,
    detect_field_mapping,
    has_core_fields,
    match_field,
)


def test_canonical_headers_map_to_themselves():
    headers = ["Date", "Description", "Merchant", "Amount", "Currency", "Account", "Category", "Tags"]
    mapping = detect_field_mapping(headers)
    assert mapping == {
        "date": "Date",
        "description": "Description",
        "merchant": "Merchant",
        "amount": "Amount",
        "currency": "Currency",
        "account": "Account",
        "category": "Category",
        "tags": "Tags",
    }


def test_substring_synonyms_and_original_header_text_is_kept():
    mapping = detect_field_mapping(["  Posted Date ", "Payee", "Transaction Amount", "Reference"])
    assert mapping["date"] == "  Posted Date "
    # "payee" is a description synonym and description is evaluated first.
    assert mapping["description"] == "Payee"
    assert mapping["amount"] == "Transaction Amount"
    assert mapping["external_id"] == "Reference"
    assert "merchant" not in mapping


def test_header_maps_to_at_most_one_field():
    # "merchant_name" is listed for both description and merchant; description wins.
    assert match_field("merchant_name") == "description"
    assert match_field("Vendor") == "merchant"


def test_first_header_wins_for_same_field():
    mapping = detect_field_mapping(
        ["Transaction Date", "Post Date", "Description", "Category", "Type", "Amount", "Memo"]
    )
    assert mapping["date"] == "Transaction Date"
    assert mapping["description"] == "Description"
    assert mapping["category"] == "Category"
    assert detect_field_mapping(["Debit", "Credit"]) == {"amount": "Debit"}


def test_candidates_keep_every_matching_header_in_order():
    candidates = detect_field_candidates(["Payee", "Amount", "Memo", "Post Date"])
    assert candidates == {
        "description": ("Payee", "Memo"),
        "amount": ("Amount",),
        "date": ("Post Date",),
    }


def test_unknown_and_blank_headers_are_ignored():
    assert detect_field_mapping(["", "   ", "Foo", "Bar"]) == {}
    assert match_field("   ") is None


def test_has_core_fields():
    assert has_core_fields({"amount": "Amount"})
    assert has_core_fields({"description": "Memo"})
    assert not has_core_fields({"merchant": "Vendor", "currency": "CCY"})
    assert not has_core_fields({})


def test_canonical_field_order():
    assert CANONICAL_FIELDS == (
        "date",
        "description",
        "merchant",
        "amount",
        "currency",
        "account",
        "category",
        "tags",
        "external_id",
    )
