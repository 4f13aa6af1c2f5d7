"""
Tests for find option rewriting on translated fields
"""
from orm_i18n.models.query import FindOptions, Include
from orm_i18n.services.query_rewriter import add_language, rewrite_find_options


def test_translated_filter_moves_to_include(i18n, models):
    table1, _ = models
    entry = i18n.i18n_models["table1"]
    options = FindOptions(where={"label": "test", "reference": "xxx"})

    rewrite_find_options(entry, table1, options)

    assert options.where == {"reference": "xxx"}
    assert len(options.include) == 1
    assert options.include[0].model is entry.model
    assert options.include[0].as_ == "table1_i18n"
    assert options.include[0].where == {"label": "test"}


def test_existing_include_where_is_extended(i18n, models):
    table1, _ = models
    entry = i18n.i18n_models["table1"]
    include = Include(model=entry.model, as_=entry.name, where={"language_id": "EN"})
    options = FindOptions(where={"description": "x"}, include=[include])

    rewrite_find_options(entry, table1, options)

    assert options.include == [include]
    assert include.where == {"language_id": "EN", "description": "x"}
    assert options.where == {}


def test_list_values_move_to_include(i18n, models):
    table1, _ = models
    entry = i18n.i18n_models["table1"]
    options = FindOptions(where={"id": [1, 2], "reference": "xxx"})

    rewrite_find_options(entry, table1, options)

    assert options.where == {"reference": "xxx"}
    assert options.include[0].where == {"id": [1, 2]}


def test_language_filter_moves_to_include(i18n, models):
    table1, _ = models
    entry = i18n.i18n_models["table1"]
    options = FindOptions(where={"language_id": "ES"})

    rewrite_find_options(entry, table1, options)

    assert options.where == {}
    assert options.include[0].where == {"language_id": "ES"}


def test_order_on_translated_field(i18n, models):
    table1, _ = models
    entry = i18n.i18n_models["table1"]
    options = FindOptions(order=[("label", "DESC"), ("reference", "ASC"), "description"])

    rewrite_find_options(entry, table1, options)

    assert options.order == [
        (entry.model, "label", "DESC"),
        ("reference", "ASC"),
        (entry.model, "description", "ASC"),
    ]


def test_rewrite_without_where_or_order(i18n, models):
    table1, _ = models
    options = FindOptions()

    rewrite_find_options(i18n.i18n_models["table1"], table1, options)

    assert options.include == []
    assert options.where == {}


def test_add_language_from_override(models):
    table1, _ = models
    options = FindOptions(language_id="EN")

    add_language(table1, options)

    assert options.virtuals == {"language_id": "EN"}
    assert set(options.attributes) == {"id", "reference"}


def test_add_language_from_where(models):
    table1, _ = models
    options = FindOptions(where={"language_id": "ES"}, attributes=["reference"])

    add_language(table1, options)

    assert options.virtuals == {"language_id": "ES"}
    assert options.attributes == ["reference"]
    # The filter itself is left to rewrite_find_options
    assert options.where == {"language_id": "ES"}


def test_add_language_without_request(models):
    table1, _ = models
    options = FindOptions()

    add_language(table1, options)

    assert options.virtuals == {}
    assert options.attributes is None


def test_add_language_on_plain_model(models):
    _, table2 = models
    options = FindOptions(language_id="EN")

    add_language(table2, options)

    assert options.virtuals == {}
