"""
Test the example survey builder.

Validates that the example produces the documented identifiers and is
safe to mutate (each call builds a fresh document).
"""

from surveyl10n.examples import build_example_survey
from surveyl10n.walker import collect_localizable_nodes


def test_example_survey_identifiers():
    ids = [n.identifier for n in collect_localizable_nodes(build_example_survey())]

    assert ids == [
        "title",
        "startsurveytext",
        "pageprevtext",
        "pagenexttext",
        "completetext",
        "intro_page.q.welcome.html",
        "school_page.q.schoolfun.title",
        "school_page.q.schoolfun.choice.yes.text",
        "school_page.q.schoolfun.choice.no.text",
        "school_page.q.feelings.title",
        "school_page.q.feelings.row.happy.text",
        "school_page.q.feelings.col.1.text",
        "school_page.q.feelings.col.2.text",
    ]


def test_example_survey_is_fresh():
    first = build_example_survey()
    first["title"]["de"] = "Kinderumfrage"
    assert "de" not in build_example_survey()["title"]
