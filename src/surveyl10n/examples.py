"""
Example survey builder.

Builds a small two-page multilingual SurveyJS document covering the
shapes a merge has to handle: survey-level texts, navigation buttons, an
HTML element, choices, and a matrix with rows and columns.

Identifiers it produces include:
    title
    startsurveytext
    intro_page.q.welcome.html
    school_page.q.schoolfun.title
    school_page.q.schoolfun.choice.yes.text
    school_page.q.feelings.row.happy.text
    school_page.q.feelings.col.1.text
"""
from typing import Any, Dict


def build_example_survey() -> Dict[str, Any]:
    return {
        "title": {"default": "Child Survey", "es-CO": "Encuesta infantil"},
        "startSurveyText": {"default": "Start Survey"},
        "pagePrevText": {"default": "Previous"},
        "pageNextText": {"default": "Next"},
        "completeText": {"default": "Finish"},
        "pages": [
            {
                "name": "Intro Page",
                "elements": [
                    {
                        "type": "html",
                        "name": "Welcome",
                        "html": {
                            "default": "<h3>Welcome!</h3> Thanks for joining.",
                            "de": "<h3>Willkommen!</h3> Danke fürs Mitmachen.",
                        },
                    },
                ],
            },
            {
                "name": "School Page",
                "elements": [
                    {
                        "type": "radiogroup",
                        "name": "SchoolFun",
                        "title": {"en-US": "Is school fun?", "de": "Macht die Schule Spaß?"},
                        "choices": [
                            {"value": "yes", "text": {"default": "Yes", "de": "Ja"}},
                            {"value": "no", "text": {"default": "No"}},
                        ],
                    },
                    {
                        "type": "matrix",
                        "name": "Feelings",
                        "title": {"default": "How do you feel at school?"},
                        "rows": [
                            {"value": "happy", "text": {"default": "Happy"}},
                        ],
                        "columns": [
                            {"value": 1, "text": {"default": "Never"}},
                            {"value": 2, "text": {"default": "Always"}},
                        ],
                    },
                ],
            },
        ],
    }


__all__ = ["build_example_survey"]
