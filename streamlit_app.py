# streamlit_app.py
"""
Flex Living - Reviews Dashboard (Streamlit)
Single-page app that:
- Loads Hostaway API reviews or falls back to mock_reviews.json
- Normalizes reviews into one shape and shows per-property performance
- Allows filtering by property, channel and minimum rating, sorted by date or rating
- Shows trends (monthly average rating) and the rating distribution
- Lets a manager pick which reviews appear on the public property page (kept for the session)
"""

import html
import logging

import altair as alt
import streamlit as st

import config
import providers
from review_normalizer import ReviewSource, normalize_reviews
from review_selection import (
    CATEGORY_NAMES,
    SORT_BY_DATE,
    SORT_BY_RATING,
    auto_select_ids,
    category_average,
    filter_reviews,
    list_channels,
    list_properties,
    monthly_trend,
    overall_average,
    property_overview,
    public_reviews,
    reviews_to_frame,
    sort_reviews,
    toggle_selection,
)

config.setup_logging()
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Flex Living — Reviews Dashboard", layout="wide")


# ----------------- Load Data -----------------
@st.cache_data
def load_reviews(path):
    # Try Hostaway API first
    api_data = providers.fetch_hostaway_reviews() if config.hostaway_configured() else None
    if api_data:
        return normalize_reviews(api_data.get("result", []), ReviewSource.HOSTAWAY.value), "hostaway"

    # Fallback: local mock JSON
    raw = providers.load_mock_reviews(path)
    return normalize_reviews(raw.get("result", []), ReviewSource.MOCK.value), "mock"


try:
    reviews, data_source = load_reviews(config.MOCK_DATA_PATH)
except FileNotFoundError:
    st.error(f"Mock data not found: {config.MOCK_DATA_PATH}. Add `mock_reviews.json` to the same folder.")
    st.stop()

if "selected_ids" not in st.session_state:
    st.session_state["selected_ids"] = auto_select_ids(reviews, config.AUTO_SELECT_MIN_RATING)
selected_ids = st.session_state["selected_ids"]


def on_toggle(review_id):
    st.session_state["selected_ids"] = toggle_selection(st.session_state["selected_ids"], review_id)


# Sidebar: data source status
st.sidebar.subheader("Data Source")
if data_source == "hostaway":
    st.sidebar.success("Connected to Hostaway API ✅")
else:
    st.sidebar.warning("Using mock data ⚠️")

st.sidebar.markdown("---")
view_mode = st.sidebar.radio("View Mode", ["Manager Dashboard", "Public Property Page"])


# ----------------- Public View: Property Page -----------------
def render_public_page():
    st.title("Flex Living — Property Page")
    st.write("Public view • Reviews shown here are only those approved by managers.")

    properties = sorted(list_properties(reviews))
    if not properties:
        st.info("No properties yet.")
        return
    selected_property = st.selectbox("Select Property", properties)
    approved = public_reviews(reviews, selected_ids, listing_name=selected_property)

    st.subheader(selected_property)
    st.write("Property description and details would go here (mockup).")

    st.markdown("### Guest Reviews")
    if not approved:
        st.info("No reviews approved for this property yet.")
        return
    for review in approved:
        st.markdown(
            f"""
            <div style="
                background-color: #ffffff;
                border-radius: 16px;
                padding: 20px;
                margin-bottom: 20px;
                box-shadow: 0 4px 12px rgba(0,0,0,0.1);
                border-left: 6px solid #1b3b36;
            ">
                <h4 style="margin: 0; color:#333;">⭐ {review.rating:g}</h4>
                <p style="margin: 6px 0; font-size: 16px; color:#555;">“{html.escape(review.public_review)}”</p>
                <p style="margin: 0; font-size: 14px; color:#888;">
                    — <b>{html.escape(review.guest_name)}</b> • {review.submitted_at[:10]}
                </p>
            </div>
            """,
            unsafe_allow_html=True,
        )


# ----------------- Manager Dashboard -----------------
def render_dashboard():
    st.title("Flex Living — Reviews Dashboard")
    st.write("Manager view • See per-property performance, filter reviews, and choose which reviews appear on the public website.")

    # Sidebar: filters
    st.sidebar.header("Filters & Controls")
    selected_listing = st.sidebar.selectbox("Property (listing)", ["all"] + sorted(list_properties(reviews)), index=0)
    selected_channel = st.sidebar.selectbox("Channel", ["all"] + sorted(list_channels(reviews)), index=0)
    min_rating = st.sidebar.selectbox("Minimum rating", ["all", "9", "8", "7"], index=0)
    sort_by = st.sidebar.selectbox("Sort by", [SORT_BY_DATE, SORT_BY_RATING], index=0)

    filtered = sort_reviews(
        filter_reviews(reviews, listing_name=selected_listing, channel=selected_channel, min_rating=min_rating),
        by=sort_by,
    )

    # ----------------- KPIs -----------------
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Total reviews", value=len(reviews))
    with col2:
        st.metric("Average rating", value=overall_average(reviews))
    with col3:
        st.metric("Properties", value=len(list_properties(reviews)))
    with col4:
        st.metric("Public reviews", value=len(selected_ids))

    st.markdown("---")

    left, right = st.columns([2, 3])

    with left:
        st.subheader("Trends & Distributions")
        df = reviews_to_frame(filtered, selected_ids)
        if not df.empty:
            trend = monthly_trend(df)
            chart = alt.Chart(trend).mark_line(point=True).encode(
                x=alt.X("year_month:T", title="Month"),
                y=alt.Y("avg_rating:Q", title="Avg rating"),
                tooltip=["year_month", alt.Tooltip("avg_rating:Q", format=".2f"), "count"],
            ).properties(height=250)
            st.altair_chart(chart, use_container_width=True)

            hist = alt.Chart(df[["rating"]]).mark_bar().encode(
                alt.X("rating:Q", bin=alt.Bin(step=0.5), title="Rating"),
                y="count()",
                tooltip=[alt.Tooltip("count()", title="Number")],
            ).properties(height=200)
            st.altair_chart(hist, use_container_width=True)
        else:
            st.info("No reviews match your filters.")

        st.subheader("Per-property performance")
        summary = property_overview(reviews, selected_ids)
        if not summary.empty:
            st.dataframe(summary.sort_values(["avg_rating", "reviews"], ascending=[False, False]), height=220)
        else:
            st.write("No properties yet.")

        if filtered:
            st.caption(" • ".join(f"{c}: {category_average(filtered, c)}" for c in CATEGORY_NAMES))

    with right:
        st.subheader(f"Reviews ({len(filtered)})")
        if not filtered:
            st.write("No reviews to show.")
        for review in filtered:
            with st.container():
                cols = st.columns([6, 1])
                with cols[0]:
                    st.markdown(f"**{review.listing_name}** — {review.guest_name} • {review.submitted_at[:10]}")
                    st.write(f"**Rating:** {review.rating:g} • **Channel:** {review.channel} • **Type:** {review.type}")
                    if review.public_review:
                        st.write(review.public_review)
                    if review.review_category:
                        st.caption(" • ".join(f"{c.category}: {c.rating:g}" for c in review.review_category))
                with cols[1]:
                    st.checkbox(
                        "Show",
                        value=review.id in selected_ids,
                        key=f"display_{review.id}",
                        on_change=on_toggle,
                        args=(review.id,),
                    )

    st.markdown("---")
    st.info("Public selection lasts for this session only. Reviews rated 9 or above start out selected.")


if view_mode == "Public Property Page":
    render_public_page()
else:
    render_dashboard()
