"""Streamlit entrypoint for deployment environments."""

import logging

import streamlit as st

st.set_page_config(page_title="Crime Reporting System", layout="wide")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

from incident_map import app

app.main()
