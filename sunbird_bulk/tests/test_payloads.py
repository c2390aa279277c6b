# sunbird_bulk/tests/test_payloads.py
"""
Tests for payloads.py
"""
import json

from sunbird_bulk import payloads
from sunbird_bulk.payloads import QuizQuestion


def _question(identifier, score):
    body = {"data": {"data": {"question": {"text": identifier}}, "config": {"max_score": score}}}
    return QuizQuestion(identifier, {"identifier": identifier, "body": json.dumps(body)}, score)


class TestLearnerProfile:
    def test_collection(self, config):
        collection = payloads.learner_profile_collection(config, "LP-01", "", "2026-12-31", ["do_1", "do_2"])
        assert collection["name"] == "LP-01"
        assert collection["createdFor"] == ["channel-1"]
        assert collection["children"] == [{"identifier": "do_1", "index": 0}, {"identifier": "do_2", "index": 1}]

    def test_update_keeps_course_order(self, config):
        update = payloads.learner_profile_update(config, "v1", "Basics", {"do_2": "Two", "do_1": "One"})
        assert update["childNodes"] == ["do_2", "do_1"]
        assert update["children"][0] == {"identifier": "do_2", "name": "Two", "index": 0}


class TestQuestionItem:
    def test_mcq_body_is_json_string(self, config):
        options = [{"text": "3", "isCorrect": False}, {"text": "4", "isCorrect": True}]
        item = payloads.mcq_question_item(config, "Q1", "2 + 2?", options, 2)
        metadata = item["metadata"]
        assert metadata["type"] == "mcq"
        assert metadata["itemType"] == "UNIT"
        body = json.loads(metadata["body"])
        assert body["data"]["config"]["max_score"] == 2
        assert body["data"]["data"]["question"]["text"] == "2 + 2?"


class TestQuiz:
    def test_body_wraps_questions(self):
        questions = [_question("do_q1", 1), _question("do_q2", 2)]
        theme = json.loads(payloads.quiz_body("Week 1", questions))["theme"]

        first_stage, summary_stage = theme["stage"]
        assert theme["startStage"] == first_stage["id"]
        questionset = first_stage["org.ekstep.questionset"][0]
        config = json.loads(questionset["config"]["__cdata"])
        assert config["max_score"] == 3
        assert config["total_items"] == 2
        entry = questionset["org.ekstep.question"][1]
        assert entry["id"] == "do_q2"
        assert json.loads(entry["config"]["__cdata"]) == {"max_score": 2}
        assert summary_stage["id"] == payloads.SUMMARY_STAGE_ID

    def test_update_totals(self, config):
        update = payloads.quiz_update(config, "v9", "Week 1", [_question("do_q1", 1.5), _question("do_q2", 2)])
        assert update["versionKey"] == "v9"
        assert update["totalScore"] == 3.5
        assert update["totalQuestions"] == 2
        assert json.loads(update["editorState"])["plugin"]["noOfExtPlugins"] == len(payloads.EXT_PLUGINS)
