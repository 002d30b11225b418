import logging

import streamlit as st

from treeftp.address import resolve_address
from treeftp.config import ReconnectPolicy, Settings, configure_logging
from treeftp.core import FtpClient, FtpError, Strategy
from treeftp.fs import printable, render_json, render_tree

settings = Settings.from_env()
configure_logging(settings.log_level)
logger = logging.getLogger("treeftp.ui.app")


st.set_page_config(page_title="tree-ftp", layout="wide")

# --- Helpers -----------------------------------------------------------------

def run_crawl(address, username, password, depth, strategy, extended, timeout, budget):
    endpoint = resolve_address(address)
    policy = ReconnectPolicy(settle=settings.reconnect.settle, interval=settings.reconnect.interval, budget=budget)
    with FtpClient(endpoint, extended=extended, timeout=timeout, policy=policy) as client:
        client.use_credentials(username, password)
        root = client.crawl(depth, strategy)
        return root, dict(client.server_info)


# --- UI ----------------------------------------------------------------------
st.title("tree-ftp — Remote tree viewer")

with st.sidebar:
    st.header("Connection")
    address = st.text_input("Address", value="127.0.0.1:21")
    username = st.text_input("Username", value=settings.username)
    password = st.text_input("Password", value=settings.password, type="password")
    extended = st.checkbox("Extended passive mode (EPSV)", value=settings.extended)

    st.header("Crawl")
    depth = st.number_input("Depth", min_value=0, max_value=32, value=settings.depth)
    strategy = st.radio("Strategy", [s.value for s in Strategy], index=1 if settings.bfs else 0, horizontal=True)
    timeout = st.number_input("Timeout (s)", min_value=1.0, max_value=300.0, value=settings.timeout)
    budget = st.number_input("Reconnect budget (s)", min_value=0.0, max_value=3600.0, value=settings.reconnect.budget)
    start = st.button("Crawl")

if start:
    logger.info(f"[UI] Crawl requested: {address} depth={depth} strategy={strategy}")
    try:
        with st.spinner(f"Crawling {address}..."):
            root, info = run_crawl(address, username, password, int(depth), strategy,
                                   extended, float(timeout), float(budget))
        st.session_state["result"] = (address, root, info)
    except FtpError as e:
        logger.error(f"[UI] Crawl failed: {e}")
        st.error(f"Crawl failed: {e}")

result = st.session_state.get("result")
if result:
    crawled, root, info = result
    st.success(f"{crawled}: {root.count()} nodes")

    col1, col2 = st.columns([3, 2])
    with col1:
        st.subheader("Tree")
        st.code(printable(render_tree(root)), language=None)
    with col2:
        st.subheader("Server")
        st.text(info.get("system", ""))
        st.text(info.get("directory", ""))
        if info.get("features"):
            st.caption("Features: " + ", ".join(info["features"]))
        st.subheader("Document")
        st.json(printable(render_json(root)))
else:
    st.info("Enter a server address and press Crawl.")
