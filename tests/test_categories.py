import json

from docchat.categories import DEFAULT_CATEGORIES, UNCATEGORIZED, group_documents, load_categories

TREE = [
    {"title": "Association", "subcategories": ["Regulations", "Board meetings"]},
    {"title": "Parking", "subcategories": []},
    {"title": "Privacy policy", "subcategories": []},
]


def doc(doc_id, category):
    return {"id": doc_id, "name": f"{doc_id}.pdf", "category": category}


def test_grouping_skips_empty_groups():
    docs = [doc("a", "Regulations"), doc("b", "Parking"), doc("c", "Regulations")]

    groups = group_documents(docs, TREE)

    assert [g["title"] for g in groups] == ["Association", "Parking"]
    association = groups[0]
    assert association["documents"] == []
    assert [s["title"] for s in association["subcategories"]] == ["Regulations"]
    assert [d["id"] for d in association["subcategories"][0]["documents"]] == ["a", "c"]
    assert [d["id"] for d in groups[1]["documents"]] == ["b"]


def test_unknown_and_missing_categories_go_last():
    docs = [doc("a", None), doc("b", "Privacy policy"), doc("c", "Something else")]

    groups = group_documents(docs, TREE)

    assert [g["title"] for g in groups] == ["Privacy policy", UNCATEGORIZED]
    assert [d["id"] for d in groups[-1]["documents"]] == ["a", "c"]


def test_top_level_title_on_category_with_subcategories():
    groups = group_documents([doc("a", "Association")], TREE)

    assert [d["id"] for d in groups[0]["documents"]] == ["a"]
    assert groups[0]["subcategories"] == []


def test_load_categories(tmp_path):
    path = tmp_path / "categories.json"
    assert load_categories(path) == DEFAULT_CATEGORIES

    path.write_text(json.dumps([{"title": "Parking"}]))
    assert load_categories(path) == [{"title": "Parking", "subcategories": []}]

    path.write_text("[{\"name\": \"missing title\"}]")
    assert load_categories(path) == DEFAULT_CATEGORIES
