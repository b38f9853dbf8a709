"""Smoke tests for the Streamlit dashboard, run headless with AppTest."""

import json
from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

import config

APP_PATH = Path(__file__).parent.parent / "streamlit_app.py"


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setattr(config, "hostaway_configured", lambda: False)
    at = AppTest.from_file(str(APP_PATH), default_timeout=30)
    at.run()
    return at


def test_dashboard_renders_sample_reviews(app):
    assert not app.exception
    assert app.title[0].value == "Flex Living — Reviews Dashboard"
    assert len(app.checkbox) == 6


def test_high_ratings_start_selected(app):
    assert app.session_state["selected_ids"] == {7453, 7455, 7457}


def test_toggling_a_review(app):
    app.checkbox(key="display_7456").check().run()
    assert 7456 in app.session_state["selected_ids"]


def test_public_page_lists_selected_reviews(app):
    app.sidebar.radio[0].set_value("Public Property Page").run()
    assert not app.exception
    assert app.title[0].value == "Flex Living — Property Page"


def test_public_page_escapes_review_markup(monkeypatch, tmp_path):
    sample = tmp_path / "reviews.json"
    sample.write_text(json.dumps({"result": [{
        "id": 9001,
        "rating": 10,
        "publicReview": "Great <b>stay</b> <script>alert(1)</script>",
        "guestName": "<i>Eve</i>",
        "listingName": "Camden Lock",
        "channel": "Airbnb",
        "submittedAt": "2024-12-01T10:00:00Z",
    }]}), encoding="utf-8")
    monkeypatch.setattr(config, "hostaway_configured", lambda: False)
    monkeypatch.setattr(config, "MOCK_DATA_PATH", sample)

    at = AppTest.from_file(str(APP_PATH), default_timeout=30)
    at.run()
    at.sidebar.radio[0].set_value("Public Property Page").run()

    assert not at.exception
    cards = [m.value for m in at.markdown if "Eve" in m.value]
    assert len(cards) == 1
    assert "Great &lt;b&gt;stay&lt;/b&gt;" in cards[0]
    assert "&lt;i&gt;Eve&lt;/i&gt;" in cards[0]
    assert "<script>" not in cards[0]
    assert "<i>Eve</i>" not in cards[0]
