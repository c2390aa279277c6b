"""
payloads.py - Request bodies for the Sunbird content APIs

The remote editor expects large, mostly fixed JSON documents: ECML
stage bodies for quizzes, the MCQ plugin body for questions, and
collection metadata for learner profiles. The fixed parts live here as
module constants; the builder functions fill in the per-row values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from sunbird_bulk.config_utils import BulkConfig


COLLECTION_MIME_TYPE = "application/vnd.ekstep.content-collection"
LEARNER_PROFILE_CATEGORY = "Learner Profile"

QUESTION_STAGE_ID = "d9ae4d48-389a-4757-867c-dc6a4beae92e"
QUESTIONSET_ID = "6d187a84-6ee0-4513-96ce-1d856e187c9b"
SUMMARY_STAGE_ID = "summary_stage_id"

STAGE_CONFIG = json.dumps({
    "opacity": 100,
    "strokeWidth": 1,
    "stroke": "rgba(255, 255, 255, 0)",
    "autoplay": False,
    "visible": True,
    "color": "#FFFFFF",
    "genieControls": False,
    "instructions": "",
}, separators=(",", ":"))

SUMMARY_CONFIG = json.dumps({
    "opacity": 100,
    "strokeWidth": 1,
    "stroke": "rgba(255, 255, 255, 0)",
    "autoplay": False,
    "visible": True,
}, separators=(",", ":"))

EXT_PLUGINS = [
    ("org.ekstep.contenteditorfunctions", "1.2"),
    ("org.ekstep.keyboardshortcuts", "1.0"),
    ("org.ekstep.richtext", "1.0"),
    ("org.ekstep.iterator", "1.0"),
    ("org.ekstep.navigation", "1.0"),
    ("org.ekstep.reviewercomments", "1.0"),
    ("org.ekstep.questionunit.mtf", "1.2"),
    ("org.ekstep.questionunit.mcq", "1.3"),
    ("org.ekstep.keyboard", "1.1"),
    ("org.ekstep.questionunit.reorder", "1.1"),
    ("org.ekstep.questionunit.sequence", "1.1"),
    ("org.ekstep.questionunit.ftb", "1.1"),
]

EDITOR_STATE = {
    "plugin": {
        "noOfExtPlugins": len(EXT_PLUGINS),
        "extPlugins": [{"plugin": p, "version": v} for p, v in EXT_PLUGINS],
    },
    "stage": {
        "noOfStages": 1,
        "currentStage": QUESTION_STAGE_ID,
        "selectedPluginObject": QUESTIONSET_ID,
    },
    "sidebar": {"selectedMenu": "settings"},
}

# Plugins the quiz content declares it uses
CONTENT_PLUGINS = [
    {"identifier": "org.ekstep.stage", "semanticVersion": "1.0"},
    {"identifier": "org.ekstep.questionset", "semanticVersion": "1.0"},
    {"identifier": "org.ekstep.navigation", "semanticVersion": "1.0"},
    {"identifier": "org.ekstep.questionset.quiz", "semanticVersion": "1.0"},
    {"identifier": "org.ekstep.iterator", "semanticVersion": "1.0"},
    {"identifier": "org.ekstep.questionunit", "semanticVersion": "1.2"},
    {"identifier": "org.ekstep.questionunit.mcq", "semanticVersion": "1.3"},
    {"identifier": "org.ekstep.summary", "semanticVersion": "1.0"},
]

# Plugin manifest entries go into the ECML body; media in the content manifest
PLUGIN_MANIFEST = {
    "plugin": [
        {"id": p["identifier"], "ver": p["semanticVersion"], "type": "plugin", "depends": ""}
        for p in CONTENT_PLUGINS
    ]
}

CONTENT_MANIFEST = {
    "media": [
        {
            "id": "summaryImage",
            "src": "/content-plugins/org.ekstep.summary-1.0/assets/summary-icon.jpg",
            "assetId": "summaryImage",
            "type": "image",
            "preload": True,
        }
    ]
}

MCQ_PLUGIN = {
    "id": "org.ekstep.questionunit.mcq",
    "version": "1.3",
    "templateId": "horizontalMCQ",
}


@dataclass
class QuizQuestion:
    """A question attached to a quiz, as read back from the remote"""
    identifier: str
    item: Dict[str, Any]
    score: float


# ============================================================================
# Learner profiles
# ============================================================================

def learner_profile_collection(
    config: BulkConfig,
    code: str,
    name: str,
    expiry_date: str,
    node_ids: Sequence[str],
) -> Dict[str, Any]:
    return {
        "name": name or code,
        "code": code,
        "description": "Enter description for Learner Profile",
        "createdBy": config.created_by,
        "organisation": config.organisation,
        "createdFor": [config.channel_id],
        "framework": config.framework,
        "mimeType": COLLECTION_MIME_TYPE,
        "creator": config.creator,
        "expiry_date": expiry_date,
        "primaryCategory": LEARNER_PROFILE_CATEGORY,
        "children": [{"identifier": node_id, "index": i} for i, node_id in enumerate(node_ids)],
    }


def learner_profile_update(
    config: BulkConfig,
    version_key: str,
    name: str,
    courses: Dict[str, str],
) -> Dict[str, Any]:
    """courses: node id -> course name, in attachment order"""
    return {
        "versionKey": version_key,
        "name": name,
        "lastUpdatedBy": config.created_by,
        "childNodes": list(courses),
        "children": [
            {"identifier": node_id, "name": course_name, "index": i}
            for i, (node_id, course_name) in enumerate(courses.items())
        ],
    }


# ============================================================================
# Questions
# ============================================================================

def mcq_question_item(
    config: BulkConfig,
    code: str,
    title: str,
    options: Sequence[Dict[str, Any]],
    max_score: int,
) -> Dict[str, Any]:
    """Assessment item for a single-answer multiple choice question."""
    body_options = [
        {
            "text": option["text"],
            "image": "",
            "audio": "",
            "audioName": "",
            "hint": "",
            "isCorrect": bool(option["isCorrect"]),
            "$$hashKey": f"object:{index + 1}",
        }
        for index, option in enumerate(options)
    ]
    question_data = {
        "question": {"text": title, "image": "", "audio": "", "audioName": "", "hint": ""},
        "options": body_options,
        "questionCount": 0,
        "media": [],
    }
    question_config = {
        "metadata": {
            "max_score": max_score,
            "isShuffleOption": False,
            "isPartialScore": True,
            "evalUnordered": False,
            "templateType": "Horizontal",
            "name": title,
            "title": title,
            "copyright": config.organisation[0] if config.organisation else "",
            "category": "MCQ",
        },
        "max_time": 0,
        "max_score": max_score,
        "partial_scoring": True,
        "layout": "Horizontal",
        "isShuffleOption": False,
        "questionCount": 1,
        "evalUnordered": False,
    }
    body = {
        "data": {
            "plugin": MCQ_PLUGIN,
            "data": question_data,
            "config": question_config,
            "media": [],
        }
    }
    return {
        "objectType": "AssessmentItem",
        "metadata": {
            "code": code,
            "name": title,
            "title": title,
            "type": "mcq",
            "itemType": "UNIT",
            "category": "MCQ",
            "qlevel": "EASY",
            "version": 2,
            "max_score": max_score,
            "isShuffleOption": False,
            "isPartialScore": True,
            "evalUnordered": False,
            "templateType": "Horizontal",
            "createdBy": config.created_by,
            "channel": config.channel_id,
            "organisation": config.organisation,
            "framework": config.framework,
            "template_id": "NA",
            "options": [{"answer": o["isCorrect"], "value": {"type": "text", "asset": o["text"]}} for o in options],
            "body": json.dumps(body),
        },
    }


# ============================================================================
# Quizzes
# ============================================================================

def quiz_content(
    config: BulkConfig,
    code: str,
    name: str,
    max_attempts: int,
    content_type: str,
    language: str,
) -> Dict[str, Any]:
    return {
        "code": code,
        "name": name,
        "maxAttempts": max_attempts,
        "description": "Enter description for Assessment",
        "createdBy": config.created_by,
        "organisation": config.organisation,
        "createdFor": [config.channel_id],
        "framework": config.framework,
        "mimeType": config.mime_type,
        "creator": config.creator,
        "contentType": content_type,
        "language": [language],
    }


def format_question_for_stage(question: QuizQuestion) -> Dict[str, Any]:
    """The per-question entry the questionset plugin renders."""
    body = json.loads(question.item["body"])
    return {
        "id": question.identifier,
        "type": "mcq",
        "pluginId": "org.ekstep.questionunit.mcq",
        "pluginVer": "1.3",
        "templateId": "horizontalMCQ",
        "data": {"__cdata": json.dumps(body["data"]["data"])},
        "config": {"__cdata": json.dumps(body["data"]["config"])},
        "w": 80,
        "h": 85,
        "x": 9,
        "y": 6,
    }


def quiz_body(name: str, questions: List[QuizQuestion]) -> str:
    """ECML body: one stage holding the questionset, then the summary stage."""
    total_score = sum(q.score for q in questions)
    questionset_config = {
        "title": name,
        "max_score": total_score,
        "allow_skip": True,
        "show_feedback": False,
        "shuffle_questions": False,
        "shuffle_options": False,
        "total_items": len(questions),
        "btn_edit": "Edit",
    }
    question_stage = {
        "x": 0,
        "y": 0,
        "w": 100,
        "h": 100,
        "id": QUESTION_STAGE_ID,
        "rotate": None,
        "config": {"__cdata": STAGE_CONFIG},
        "param": [{"name": "next", "value": SUMMARY_STAGE_ID}],
        "manifest": {"media": []},
        "org.ekstep.questionset": [
            {
                "x": 9,
                "y": 6,
                "w": 80,
                "h": 85,
                "rotate": 0,
                "z-index": 0,
                "id": QUESTIONSET_ID,
                "data": {"__cdata": json.dumps([q.item for q in questions])},
                "config": {"__cdata": json.dumps(questionset_config)},
                "org.ekstep.question": [format_question_for_stage(q) for q in questions],
            }
        ],
    }
    summary_stage = {
        "x": 0,
        "y": 0,
        "w": 100,
        "h": 100,
        "rotate": None,
        "config": {"__cdata": STAGE_CONFIG},
        "id": SUMMARY_STAGE_ID,
        "manifest": {"media": [{"assetId": "summaryImage"}]},
        "org.ekstep.summary": [
            {
                "config": {"__cdata": SUMMARY_CONFIG},
                "id": "summary_plugin_id",
                "rotate": 0,
                "x": 6.69,
                "y": -27.9,
                "w": 77.45,
                "h": 125.53,
                "z-index": 0,
            }
        ],
    }
    return json.dumps({
        "theme": {
            "id": "theme",
            "version": "1.0",
            "startStage": QUESTION_STAGE_ID,
            "stage": [question_stage, summary_stage],
            "manifest": CONTENT_MANIFEST,
            "plugin-manifest": PLUGIN_MANIFEST,
            "compatibilityVersion": 2,
        }
    })


def quiz_update(
    config: BulkConfig,
    version_key: str,
    name: str,
    questions: List[QuizQuestion],
) -> Dict[str, Any]:
    total_score = sum(q.score for q in questions)
    return {
        "versionKey": version_key,
        "lastUpdatedBy": config.created_by,
        "stageIcons": "",
        "totalQuestions": len(questions),
        "totalScore": total_score,
        "questions": [{"identifier": q.identifier} for q in questions],
        "assets": [],
        "editorState": json.dumps(EDITOR_STATE),
        "pragma": [],
        "plugins": CONTENT_PLUGINS,
        "body": quiz_body(name, questions),
        "copyright": config.organisation[0] if config.organisation else "",
        "organisation": config.organisation,
        "consumerId": config.created_by or "",
    }
