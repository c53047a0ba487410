"""Tests for specialist matching and scoring."""

from intelboard.core.matching import find_matches, score_specialist


def _request(**overrides):
    base = {
        "id": "r1",
        "title": "Kafka streaming platform",
        "description": "Build real-time pipelines with Python and SQL",
        "industry": "Finance",
        "tags": ["AWS"],
    }
    base.update(overrides)
    return base


def _specialist(user_id, **fields):
    return {"id": user_id, "name": user_id, "role": "Specialist", **fields}


# ── Tests: Scoring ────────────────────────────────────────────────────────


class TestScoreSpecialist:

    def test_industry_only(self):
        scored = score_specialist(_request(), _specialist("s1", industry=["finance"]))

        assert scored.score == 40
        assert scored.match_reasons == ["Industry match: Finance"]

    def test_skills_are_matched_in_title_description_and_tags(self):
        spec = _specialist("s1", skills=["Kafka", "aws"])
        scored = score_specialist(_request(), spec)

        assert scored.score == 40
        assert "Skill match: Kafka" in scored.match_reasons
        assert "Skill match: aws" in scored.match_reasons

    def test_skill_objects_use_their_name(self):
        spec = _specialist("s1", skills=[{"name": "Python", "category": "Language"}])
        scored = score_specialist(_request(), spec)

        assert scored.score == 20
        assert scored.match_reasons == ["Skill match: Python"]

    def test_only_three_skills_count(self):
        spec = _specialist("s1", skills=["Kafka", "Python", "SQL", "AWS"])
        scored = score_specialist(_request(), spec)

        assert scored.score == 60
        assert len(scored.match_reasons) == 3

    def test_job_title_counts_as_role(self):
        spec = _specialist("s1", job_title="Streaming")
        scored = score_specialist(_request(), spec)

        assert scored.score == 20
        assert scored.match_reasons == ["Role match: Streaming"]

    def test_score_is_capped_at_100(self):
        spec = _specialist(
            "s1",
            industry=["Finance"],
            skills=["Kafka", "Python", "SQL"],
            job_title="Kafka",
        )
        scored = score_specialist(_request(), spec)

        assert scored.score == 100

    def test_no_signal_scores_zero(self):
        scored = score_specialist(_request(), _specialist("s1", skills=["Salesforce"], industry=["Retail"]))

        assert scored.score == 0
        assert scored.match_reasons == []

    def test_to_dict_merges_specialist_fields(self):
        scored = score_specialist(_request(), _specialist("s1", industry=["Finance"]))
        data = scored.to_dict()

        assert data["id"] == "s1"
        assert data["score"] == 40
        assert data["matchReasons"] == ["Industry match: Finance"]


# ── Tests: Ranking ────────────────────────────────────────────────────────


class TestFindMatches:

    def test_sorted_best_first_and_zero_scores_dropped(self):
        specialists = [
            _specialist("weak", skills=["SQL"]),
            _specialist("none", skills=["Cobol"]),
            _specialist("strong", industry=["Finance"], skills=["Kafka"]),
        ]

        matches = find_matches(_request(), specialists)

        assert [m.specialist["id"] for m in matches] == ["strong", "weak"]

    def test_ties_keep_input_order(self):
        specialists = [
            _specialist("first", skills=["SQL"]),
            _specialist("second", skills=["Python"]),
        ]

        matches = find_matches(_request(), specialists)

        assert [m.specialist["id"] for m in matches] == ["first", "second"]

    def test_empty_pool(self):
        assert find_matches(_request(), []) == []
