import html
import logging

import streamlit as st

from miniapps_shell.data import api_client, loaders
from miniapps_shell.formatting import time_ago
from miniapps_shell.state import session_slices

logger = logging.getLogger(__name__)

SLUG = "text-summarizer"
MIN_WORDS = 20
LENGTH_RATIOS = {"Short": 0.2, "Medium": 0.3, "Long": 0.5}


def word_count(text):
    return len(str(text or "").split())


def render(ctx):
    st.markdown("<div class='section-title'>📄 Text Summarizer</div>", unsafe_allow_html=True)
    text = st.text_area("Text to summarize", height=220, key="summarizer.text")
    words = word_count(text)
    cols = st.columns([2, 2, 1])
    with cols[0]:
        length = st.segmented_control("Length", list(LENGTH_RATIOS), default="Medium", key="summarizer.length") or "Medium"
    with cols[1]:
        save = st.checkbox("Save to history", value=True, key="summarizer.save")
    with cols[2]:
        st.caption(f"{words} words")

    if st.button("Summarize", type="primary", key="summarizer.run", disabled=words < MIN_WORDS):
        try:
            result = api_client.post("/v1/summarize", json={"text": text, "ratio": LENGTH_RATIOS[length], "save": save})
        except RuntimeError as exc:
            logger.warning("Summarize failed: %s", exc)
            st.error(str(exc))
        else:
            session_slices.set_value(SLUG, "result", result)
            if save:
                loaders.load_summary_history_cached.clear()
    if words and words < MIN_WORDS:
        st.caption(f"Enter at least {MIN_WORDS} words.")

    result = session_slices.get_value(SLUG, "result")
    if result:
        st.markdown("<div class='small-label'>Summary</div>", unsafe_allow_html=True)
        st.markdown(f"<div class='panel'>{html.escape(result['summary'])}</div>", unsafe_allow_html=True)
        st.caption(
            f"{result['original_words']} → {result['summary_words']} words · "
            f"{result['sentences_kept']}/{result['sentences_total']} sentences · {result['compression']}% shorter"
        )

    try:
        history = loaders.load_summary_history_cached(ctx.user_email)
    except RuntimeError as exc:
        logger.warning("Unable to load summary history: %s", exc)
        history = []
    if history:
        st.markdown("<div class='small-label'>History</div>", unsafe_allow_html=True)
        for entry in history:
            with st.expander(f"{entry.get('text', '')[:60]}… · {time_ago(entry.get('created_at'))}"):
                st.write(entry.get("summary"))
        if st.button("Clear history", key="summarizer.clear"):
            loaders.mutate("DELETE", "/v1/summarize/history", invalidates=(loaders.load_summary_history_cached,))
            st.rerun()
