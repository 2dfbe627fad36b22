from app.errors import issues_from_pydantic


def test_location_prefix_is_split_from_the_path():
    issues = issues_from_pydantic(
        [
            {"loc": ("body", "baseStats", "hp"), "type": "greater_than_equal", "msg": "too small"},
            {"loc": ("query", "pageSize"), "type": "less_than_equal", "msg": "too big"},
        ]
    )

    assert [(i.location, i.path, i.rule) for i in issues] == [
        ("body", "baseStats.hp", "greater_than_equal"),
        ("query", "pageSize", "less_than_equal"),
    ]


def test_list_indices_become_path_segments():
    issues = issues_from_pydantic([{"loc": ("body", "media", 0, "url"), "type": "url_parsing", "msg": "bad"}])

    assert issues[0].path == "media.0.url"


def test_missing_fields_fall_back_to_defaults():
    issue = issues_from_pydantic([{"loc": ("name",)}])[0]

    assert issue.location == "body"
    assert issue.rule == "invalid"
    assert issue.message == "Invalid value"
