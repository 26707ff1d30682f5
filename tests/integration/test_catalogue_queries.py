"""
Runs the bundled catalogue against a seeded MongoDB database.

Dataset summary (tests/fixtures/dataset.json):
- 6 users, 3 active; 4 female, 2 male; ages 20, 38, 24, 39, 33, 17
- tag counts 5, 4, 4, 5, 0, 2; only user 0 is tagged "enim"
- 3 authors and 4 books, every book pointing at an existing author
"""

import pytest

pytestmark = [pytest.mark.asyncio, pytest.mark.integration]


async def names_of(runner, query_name):
    result = await runner.run(query_name)
    assert result.ok, result
    return sorted(doc["name"] for doc in result.documents)


async def test_every_catalogue_query_succeeds(runner):
    results = await runner.run_many()

    assert [result.name for result in results] == runner.names()
    assert [str(result) for result in results if not result.ok] == []


async def test_active_user_count_matches_full_scan(runner, test_db):
    result = await runner.run("active_users_count")

    scanned = [doc async for doc in test_db["users"].find({}) if doc.get("isActive") is True]
    assert result.scalar("activeUsers") == len(scanned) == 3


async def test_enim_tag_count(runner):
    result = await runner.run("users_with_enim_tag_count")
    assert result.documents == [{"noOfUsersWithEnimTag": 1}]


async def test_enim_tag_count_without_matches_is_empty_success(runner, test_db):
    await test_db["users"].update_many({}, {"$pull": {"tags": "enim"}})

    result = await runner.run("users_with_enim_tag_count")

    assert result.ok
    assert result.is_empty
    assert result.scalar("noOfUsersWithEnimTag") == 0


async def test_filter_queries(runner):
    assert await names_of(runner, "inactive_users_with_velit_tag") == ["Aurelia Gonzales"]
    assert (await runner.run("users_with_second_tag_ad_count")).scalar("secondTagHasAD") == 1
    assert await names_of(runner, "users_with_enim_and_id_tags") == ["Aurelia Gonzales"]
    assert (await runner.run("users_with_phone_prefix_940_count")).scalar("matchedPhoneNumber") == 2


async def test_projection_keeps_only_requested_fields(runner):
    result = await runner.run("inactive_users_with_velit_tag")
    assert set(result.documents[0]) == {"_id", "name", "age"}


async def test_grouping_queries(runner):
    by_gender = await runner.run("user_count_by_gender")
    assert {doc["_id"]: doc["totalUsers"] for doc in by_gender.documents} == {"female": 4, "male": 2}

    average_by_gender = await runner.run("average_age_by_gender")
    assert {doc["_id"]: doc["avgAge"] for doc in average_by_gender.documents} == {
        "female": 32.5,
        "male": 20.5,
    }

    assert (await runner.run("average_age_all_users")).scalar("avgAge") == pytest.approx(171 / 6)

    usa = await runner.run("companies_in_usa_user_count")
    assert {doc["_id"]: doc["userCount"] for doc in usa.documents} == {
        "YURTURE": 1,
        "RODEMCO": 1,
        "ZILLANET": 1,
    }

    fruits = await runner.run("users_by_favorite_fruit")
    assert {doc["_id"]: doc["users"] for doc in fruits.documents} == {
        "apple": ["Kitty Snow", "jonas Carver"],
        "banana": ["Alison Farmer", "Aurelia Gonzales"],
        "strawberry": ["Hays Wise", "Karyn Rhodes"],
    }


async def test_top_k_queries_are_ordered_by_count(runner):
    fruits = await runner.run("top_5_favorite_fruits")
    counts = [doc["count"] for doc in fruits.documents]
    # Fewer than five distinct fruits exist
    assert len(counts) == 3
    assert counts == sorted(counts, reverse=True)

    country = await runner.run("country_with_most_users")
    assert country.documents == [{"_id": "USA", "noOfUsers": 3}]


async def test_latest_registered_users(runner):
    result = await runner.run("latest_registered_users")

    assert [doc["name"] for doc in result.documents] == [
        "Kitty Snow", "Alison Farmer", "jonas Carver", "Hays Wise", "Aurelia Gonzales"
    ]
    assert all(set(doc) == {"_id", "name", "age", "registered"} for doc in result.documents)


async def test_average_tags_strategies_agree(runner):
    check = await runner.check_equivalence("average_tags_per_user_size")

    assert check.agree
    assert check.first.scalar("avgTags") == pytest.approx(20 / 6)


async def test_average_tags_strategies_agree_with_absent_and_null_tags(runner, test_db):
    await test_db["users"].update_one({"index": 5}, {"$unset": {"tags": ""}})
    await test_db["users"].update_one({"index": 2}, {"$set": {"tags": None}})

    check = await runner.check_equivalence("average_tags_per_user_size")

    assert check.agree
    # 5 + 4 + 0 + 5 + 0 + 0 tags over 6 users
    assert check.second.scalar("avgTags") == pytest.approx(14 / 6)


async def test_join_strategies_agree(runner):
    check = await runner.check_equivalence("books_with_author_first")

    assert check.agree
    authors = {doc["title"]: doc["author_details"]["name"] for doc in check.first.documents}
    assert authors["Animal Farm"] == "George Orwell"
    assert authors["Pride and Prejudice"] == "Jane Austen"


async def test_comparison_predicates(runner):
    assert await names_of(runner, "age_equal_21") == []
    assert len(await names_of(runner, "age_not_equal_18")) == 6
    assert await names_of(runner, "age_greater_than_30") == ["Alison Farmer", "Karyn Rhodes",
                                                             "Kitty Snow"]
    assert await names_of(runner, "age_at_least_40") == []
    assert await names_of(runner, "age_less_than_21") == ["Aurelia Gonzales", "jonas Carver"]
    assert await names_of(runner, "age_at_most_20") == ["Aurelia Gonzales", "jonas Carver"]
    assert await names_of(runner, "age_in_20_21_22") == ["Aurelia Gonzales"]
    assert len(await names_of(runner, "age_not_in_20_21_22")) == 5


async def test_logical_predicates(runner):
    assert await names_of(runner, "female_users_older_than_20") == ["Alison Farmer",
                                                                    "Karyn Rhodes", "Kitty Snow"]
    assert len(await names_of(runner, "female_or_younger_than_21_users")) == 5
    assert await names_of(runner, "age_not_greater_than_22") == ["Aurelia Gonzales",
                                                                 "jonas Carver"]
    assert await names_of(runner, "neither_minor_nor_female_users") == ["Hays Wise"]


async def test_de_morgan_nor_equals_and_of_negations(runner, test_db):
    # A user without age or gender must land on the same side of both predicates
    await test_db["users"].insert_one({"index": 99, "name": "Nobody"})

    check = await runner.check_equivalence("not_minor_and_not_female_users")

    assert check.agree
    assert sorted(doc["name"] for doc in check.first.documents) == ["Hays Wise", "Nobody"]


async def test_pattern_and_expression_predicates(runner, test_db):
    assert await names_of(runner, "names_starting_with_j") == ["jonas Carver"]
    assert await names_of(runner, "index_greater_than_age") == []
    assert await names_of(runner, "even_age_users") == ["Aurelia Gonzales", "Hays Wise",
                                                        "Kitty Snow"]

    await test_db["users"].update_one({"index": 5}, {"$set": {"index": 50}})
    assert await names_of(runner, "index_greater_than_age") == ["jonas Carver"]


async def test_existence_type_and_array_predicates(runner, test_db):
    await test_db["users"].insert_one({"index": 98, "name": "Freelancer", "age": 30.5})

    assert "Freelancer" not in await names_of(runner, "users_with_company")
    assert "Freelancer" not in await names_of(runner, "users_with_integer_age")
    assert len(await names_of(runner, "users_with_integer_age")) == 6
    assert await names_of(runner, "users_with_in_and_adipisicing_tags") == ["Karyn Rhodes"]
