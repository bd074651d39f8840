"""Nexus Wargame (Streamlit)

Principles:
- UI only renders + triggers.
- Core domain and engine are pure Python modules.
- Advice is LLM-only (Gemini). If the LLM fails the Oracle says so in the chat.

Entry point: streamlit run app.py
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, List

import pandas as pd
import streamlit as st

import core
from content.oracle import GREETING, get_strategic_advice
from content.prompts import format_currency
from content.providers.base import ProviderStatus
from content.providers.gemini import GeminiProvider
from content.schemas import describe_directive, directive_from_dict
from core.audit import verify_audit_chain
from core.modes import DEFAULT_MODES, get_mode_spec
from core.scenario import default_start_state
from core.state import ALLOCATION_KEYS, HR_INITIATIVES, GameState, ProductType, ResourceAllocation, StrategyFocus, to_dict
from engine.config import EngineConfig, Settings
from engine.logging import configure_logging, dumps_run_export, get_logger, load_run_export, make_run_export
from engine.pipeline import SimulationEngine

APP_TITLE = "Nexus Wargame"
APP_SUBTITLE = "Yearly strategy sandbox: set directives → simulate a year → read the report. (deterministic economy + LLM advisor)"
APP_VERSION = "1.0.0"
EXPECTED_CORE_API = "core-wargame-v1"

SETTINGS = Settings.from_env()
configure_logging(SETTINGS.log_level, SETTINGS.log_json)
log = get_logger("app")

st.set_page_config(page_title=APP_TITLE, page_icon="📈", layout="wide", initial_sidebar_state="expanded")

CSS = """
<style>
.block-container {padding-top: 3.2rem; padding-bottom: 2rem;}
section[data-testid="stSidebar"] .block-container {padding-top: 2.0rem;}
.card {
  border: 1px solid rgba(255,255,255,0.08);
  border-radius: 16px;
  padding: 14px 16px;
  background: rgba(255,255,255,0.03);
}
.pill {
  display: inline-block;
  padding: 2px 10px;
  border-radius: 999px;
  border: 1px solid rgba(255,255,255,0.12);
  font-size: 12px;
  opacity: .85;
}
.pill.ok {border-color: rgba(120,255,160,0.25);}
.pill.bad {border-color: rgba(255,120,120,0.25);}
hr.soft {border: none; border-top: 1px solid rgba(255,255,255,0.08); margin: 1rem 0;}
.small {font-size: 13px; opacity:.75;}
.mono {font-family: monospace; font-size: 12px;}
</style>
"""

st.markdown(CSS, unsafe_allow_html=True)

if getattr(core, "API_VERSION", None) != EXPECTED_CORE_API:
    st.error(
        "Core version does not match the app (partial deploy?).\n\n"
        f"Expected core: {EXPECTED_CORE_API}, found: {getattr(core, 'API_VERSION', None)!r}"
    )
    st.stop()


PAGES = ["Strategy", "Performance", "NexusOracle", "Audit Logs", "Debug"]

DEFAULT_ALLOCATION = ResourceAllocation()

ALLOCATION_LABELS = {
    "rd": "R&D",
    "marketing": "Marketing",
    "sales": "Sales",
    "operations": "Operations",
    "hr": "HR",
    "customer_service": "Customer service",
    "capital_investment": "Capital investment",
}


# =========================
# Helpers
# =========================


def _get_api_key() -> str:
    # Streamlit Cloud: st.secrets (missing secrets file raises)
    try:
        if "GEMINI_API_KEY" in st.secrets:
            return str(st.secrets["GEMINI_API_KEY"])
    except Exception:
        log.debug("no_streamlit_secrets")
    return SETTINGS.gemini_api_key


def _provider() -> GeminiProvider:
    return GeminiProvider.from_api_key_string(_get_api_key())


def _provider_status() -> ProviderStatus:
    try:
        return _provider().status()
    except Exception as e:
        return ProviderStatus(False, "none", "", note="", error=str(e))


def _pct(x: float) -> str:
    if x in (float("inf"), float("-inf")):
        return "n/a"
    return f"{x:+.1f}%"


def _focus_label(f: StrategyFocus) -> str:
    return f.value.replace("_", " ").title()


# =========================
# Session State
# =========================


def _ensure_state() -> None:
    ss = st.session_state
    if "started" not in ss:
        ss.started = False
    if "base_seed" not in ss:
        ss.base_seed = 42
    if "mode_key" not in ss:
        ss.mode_key = "Balanced"
    if "season_len" not in ss:
        ss.season_len = 10
    if "engine" not in ss:
        ss.engine = None
    if "chat" not in ss:
        ss.chat = [{"role": "assistant", "content": GREETING}]
    if "last_error" not in ss:
        ss.last_error = ""


def _reset_run() -> None:
    ss = st.session_state
    for k in list(ss.keys()):
        del ss[k]
    _ensure_state()


def _start_run() -> None:
    ss = st.session_state
    cfg = EngineConfig(base_seed=int(ss.base_seed), mode_key=str(ss.mode_key), season_length=int(ss.season_len))
    ss.engine = SimulationEngine(default_start_state(cfg.mode_key), cfg)
    ss.started = True
    ss.chat = [{"role": "assistant", "content": GREETING}]
    ss.last_error = ""
    log.info("run_started", seed=cfg.base_seed, mode=cfg.mode_key)


def _engine() -> SimulationEngine:
    return st.session_state.engine


def _state() -> GameState:
    return _engine().get_game_state()


# =========================
# UI Pages
# =========================


def page_setup() -> None:
    st.title(APP_TITLE)
    st.caption(APP_SUBTITLE)
    st.markdown("""
    ### How to play
    - Every year you set a **strategic focus** and split the budget across departments (must total **100%**).
    - Optional moves: reprice products, launch or divest product lines, run campaigns, hire / train / downsize.
    - **Deploy Directives** simulates one year and files a year-end report.
    - Ask **NexusOracle** for advice. It reads a summary of your company and the market.

    **Note:** The economy is deterministic for a given seed. Only the Oracle needs a Gemini API key.
    """)


def page_strategy() -> None:
    ss = st.session_state
    engine = _engine()
    state = _state()
    company = state.player_company
    season_end = company.year_established + int(engine.config.season_length)

    st.title(f"Year {state.current_year + 1} Planning")
    st.caption("Formulate strategic directives for the upcoming fiscal period.")

    if company.cash <= 0:
        st.error("💀 Cash ran out. The board has dissolved the company. Game over.")
        return
    if state.current_year >= season_end:
        st.success(f"🏁 Season over after {engine.config.season_length} years. Check Performance for the final numbers.")
        return

    if ss.last_error:
        st.error(ss.last_error)
        ss.last_error = ""

    left, right = st.columns(2)

    with left:
        st.markdown("#### Strategic priority")
        focus = st.radio(
            "Focus",
            list(StrategyFocus),
            index=list(StrategyFocus).index(company.strategic_focus),
            format_func=_focus_label,
            label_visibility="collapsed",
        )
        hr = st.selectbox("HR initiative", list(HR_INITIATIVES), index=list(HR_INITIATIVES).index("none"))

    with right:
        st.markdown("#### Resource allocation")
        alloc: Dict[str, float] = {}
        for k in ALLOCATION_KEYS:
            alloc[k] = float(st.slider(ALLOCATION_LABELS[k], 0, 100, int(getattr(DEFAULT_ALLOCATION, k)), key=f"alloc_{k}"))
        total = sum(alloc.values())
        pill = "ok" if total == 100 else "bad"
        st.markdown(f"<span class='pill {pill}'>{total:g}% / 100%</span>", unsafe_allow_html=True)

    st.markdown("<hr class='soft'/>", unsafe_allow_html=True)

    with st.expander("💲 Pricing & portfolio"):
        pricing: List[Dict[str, Any]] = []
        for p in company.product_lines:
            new_price = st.number_input(
                f"{p.name} price (now {format_currency(p.base_price)})",
                min_value=0.0, value=float(p.base_price), step=1.0, key=f"price_{p.id}",
            )
            if abs(new_price - p.base_price) > 1e-9:
                pricing.append({"product_id": p.id, "new_price": new_price})
        divest = st.multiselect(
            "Divest product lines",
            [p.id for p in company.product_lines],
            format_func=lambda pid: next((p.name for p in company.product_lines if p.id == pid), pid),
        )

    with st.expander("🚀 Launch a product"):
        np_name = st.text_input("Product name", key="np_name")
        np_type = st.selectbox("Type", list(ProductType), format_func=lambda t: t.value.replace("_", " "), key="np_type")
        np_segments = st.multiselect(
            "Target segments", [s.id for s in state.market_segments],
            format_func=lambda sid: next((s.name for s in state.market_segments if s.id == sid), sid),
            key="np_segments",
        )
        np_features = st.text_input("Features to develop (comma separated)", key="np_features")

    with st.expander("📣 Marketing campaign"):
        mc_name = st.text_input("Campaign name", key="mc_name")
        mc_budget = st.number_input("Budget", min_value=0.0, value=0.0, step=10_000.0, key="mc_budget")
        mc_message = st.text_input("Message", key="mc_message")

    raw = {
        "overall_focus": focus,
        "resource_allocation": alloc,
        "hr_initiative": hr,
        "pricing_adjustments": pricing,
        "divest_product_lines": divest,
        "new_products": [{"name": np_name, "type": np_type, "target_segment_ids": np_segments, "features_to_develop": np_features}],
        "marketing_campaigns": [{"name": mc_name, "budget": mc_budget, "message": mc_message}],
    }

    if st.button("Deploy Directives", type="primary", use_container_width=True, disabled=total != 100):
        try:
            directive = directive_from_dict(raw)
            engine.set_player_directive(directive)
            with st.spinner("Simulating the fiscal year…"):
                report = engine.advance_year()
        except (ValueError, PermissionError, RuntimeError) as e:
            ss.last_error = f"Simulation error: {e}"
            log.warning("advance_failed", error=str(e))
            st.rerun()
        else:
            st.toast(f"Year {report.year} closed. {describe_directive(directive)}")
            ss.next_page = "Performance"
            st.rerun()
    if total != 100:
        st.caption("Allocation must total 100%.")


def page_performance() -> None:
    state = _state()
    company = state.player_company
    reports = state.historical_reports
    last = reports[-1] if reports else None

    st.title("Performance Analytics")

    a, b, c, d = st.columns(4)
    a.metric("Total Revenue", format_currency(company.revenue), _pct(last.kpis.revenue_growth) if last else None)
    b.metric("Net Profit", format_currency(company.profit), f"{last.kpis.profit_margin:.1f}% margin" if last else None)
    c.metric("Market Share", f"{company.market_share:.1f}%", _pct(last.kpis.market_share_growth) if last else None)
    d.metric("Cust. Sat", f"{company.customer_satisfaction:.0f}%")

    left, right = st.columns([2, 1])
    with left:
        st.markdown("#### Revenue trajectory")
        rows = [{"year": r.year, "revenue": r.company_state.revenue, "net profit": r.company_state.profit} for r in reports]
        if not rows:
            rows = [{"year": state.current_year, "revenue": company.revenue, "net profit": company.profit}]
        st.area_chart(pd.DataFrame(rows).set_index("year"))

    with right:
        st.markdown("#### Market intelligence")
        for comp in state.competitors:
            st.markdown(f"**{comp.name}** · {comp.market_share:.1f}%")
            st.progress(min(1.0, comp.market_share / 100.0))
            st.caption(f"Strategy: {comp.strategy.replace('_', ' ')}")
            if comp.recent_actions:
                st.caption(f"Latest: {comp.recent_actions[-1]}")

    st.markdown("<hr class='soft'/>", unsafe_allow_html=True)

    if last is None:
        st.info("No year-end reports yet. Deploy your first directives.")
        return

    st.markdown(f"### Year-end report {last.year}")
    k = last.kpis
    r1, r2, r3, r4 = st.columns(4)
    r1.metric("CAC", format_currency(k.customer_acquisition_cost))
    r2.metric("Retention", f"{k.customer_retention_rate:.0f}%")
    r3.metric("Innovation index", f"{k.innovation_index:.0f}")
    r4.metric("Employee morale", f"{k.employee_morale:.0f}")

    i1, i2 = st.columns(2)
    with i1:
        st.markdown("**Key insights**")
        for x in last.key_insights:
            st.markdown(f"- {x}")
        st.markdown("**Market news**")
        for x in last.market_news_events:
            st.markdown(f"- {x}")
    with i2:
        st.markdown("**Recommendations**")
        for x in last.recommendations:
            st.markdown(f"- {x}")
        st.markdown("**Competitor actions**")
        for x in last.competitor_actions:
            st.markdown(f"- {x}")

    with st.expander("📑 Financial statements"):
        fin = company.financials
        f1, f2, f3 = st.columns(3)
        f1.markdown("**Income statement**")
        f1.dataframe(pd.Series(asdict(fin.income_statement), name="amount"))
        f2.markdown("**Balance sheet**")
        f2.dataframe(pd.Series(asdict(fin.balance_sheet), name="amount"))
        f3.markdown("**Cash flow**")
        f3.dataframe(pd.Series(asdict(fin.cash_flow_statement), name="amount"))

    with st.expander("📦 Product lines"):
        st.dataframe(pd.DataFrame([
            {
                "id": p.id, "name": p.name, "type": p.type.value, "stage": p.lifecycle_stage,
                "customers": p.customer_count, "price": p.base_price, "revenue": p.revenue,
                "innovation": round(p.innovation_level, 1),
            }
            for p in company.product_lines
        ]))


def page_oracle() -> None:
    ss = st.session_state
    engine = _engine()

    st.title("NexusOracle AI")
    st.caption("Strategic Intelligence Layer")

    for m in ss.chat:
        with st.chat_message(m["role"]):
            st.markdown(m["content"])

    query = st.chat_input("Ask the Oracle…")
    if query and query.strip():
        ss.chat.append({"role": "user", "content": query})
        mode = get_mode_spec(engine.config.mode_key)
        with st.spinner("NexusOracle is thinking…"):
            answer = get_strategic_advice(_provider(), _state(), query, temperature=mode.temp, tone=mode.tone)
        ss.chat.append({"role": "assistant", "content": answer})
        st.rerun()


def page_audit() -> None:
    state = _state()
    st.title("Immutable Audit Log")

    broken = verify_audit_chain(state.audit_log, state.identities)
    if broken is None:
        st.markdown("<span class='pill ok'>Chained ledger: intact</span>", unsafe_allow_html=True)
    else:
        st.markdown(f"<span class='pill bad'>Chain broken at entry #{broken}</span>", unsafe_allow_html=True)

    if not state.audit_log:
        st.info("No entries in current session ledger.")
        return

    for entry in reversed(state.audit_log):
        ts = datetime.fromtimestamp(entry.timestamp / 1000.0, tz=timezone.utc).strftime("%H:%M:%S")
        st.markdown("<div class='card'>", unsafe_allow_html=True)
        st.markdown(f"`[{ts}]` **{entry.agent_name}** · `{entry.action}`")
        st.markdown(f"<div class='mono'>sig {entry.signature[:24]}… · prev {(entry.previous_entry_hash or '-')[:16]}</div>", unsafe_allow_html=True)
        with st.expander("Details"):
            st.json(entry.details)
        st.markdown("</div>", unsafe_allow_html=True)


def page_debug() -> None:
    engine = _engine()
    st.title("Debug")

    st.subheader("Provider")
    st.json(asdict(_provider_status()))

    st.subheader("EngineConfig")
    st.json(asdict(engine.config))

    st.subheader("Pending directive")
    st.json(to_dict(engine.pending_directive) if engine.pending_directive else {})

    st.subheader("GameState")
    st.json(to_dict(_state()))


def export_import_controls() -> None:
    ss = st.session_state
    st.sidebar.markdown("---")
    st.sidebar.markdown("### Run Export / Import")

    if ss.get("engine") is not None:
        engine = _engine()
        payload = make_run_export(
            seed=int(engine.config.base_seed),
            config=asdict(engine.config),
            state=engine.get_game_state(),
            meta={"app": APP_TITLE, "version": APP_VERSION, "exported_at": datetime.now(timezone.utc).isoformat()},
        )
        st.sidebar.download_button(
            "Download run file",
            data=dumps_run_export(payload).encode("utf-8"),
            file_name=f"nexus_wargame_{engine.get_game_state().current_year}.json",
            mime="application/json",
        )

    up = st.sidebar.file_uploader("Load run file", type=["json"], accept_multiple_files=False)
    if up is not None and ss.get("imported_name") != up.name:
        try:
            data = load_run_export(up.read().decode("utf-8"))
            cfg = EngineConfig(**dict(data.get("config") or {"base_seed": data.get("seed", 42)}))
            ss.engine = SimulationEngine(data["game_state"], cfg)
            ss.base_seed = cfg.base_seed
            ss.mode_key = cfg.mode_key
            ss.season_len = cfg.season_length
            ss.started = True
            ss.imported_name = up.name
            st.sidebar.success("Run loaded.")
            log.info("run_imported", year=data["game_state"].current_year)
            st.rerun()
        except (ValueError, KeyError, TypeError) as e:
            st.sidebar.error(f"Import failed: {e}")


# =========================
# Sidebar
# =========================


def sidebar() -> str:
    ss = st.session_state

    st.sidebar.markdown(f"**{APP_TITLE}**  ")
    st.sidebar.markdown(f"v{APP_VERSION}")

    if ss.started and ss.engine is not None:
        state = _state()
        st.sidebar.metric("Cash", format_currency(state.player_company.cash))
        c1, c2 = st.sidebar.columns(2)
        c1.metric("Year", str(state.current_year))
        c2.metric("Sentiment", f"{state.global_market_sentiment:g}%")

    st.sidebar.markdown("---")

    mode_names = list(DEFAULT_MODES.keys())
    mode_ix = mode_names.index(ss.mode_key) if ss.mode_key in mode_names else 0
    ss.mode_key = st.sidebar.selectbox("Market mode", mode_names, index=mode_ix, disabled=ss.started)
    st.sidebar.caption(get_mode_spec(ss.mode_key).desc)
    ss.season_len = st.sidebar.slider("Season length (years)", min_value=3, max_value=20, value=int(ss.season_len), step=1, disabled=ss.started)
    ss.base_seed = st.sidebar.number_input("Seed (deterministic economy)", value=int(ss.base_seed), step=1, disabled=ss.started)

    st.sidebar.markdown("---")

    ps = _provider_status()
    if ps.ok:
        st.sidebar.success(f"Gemini ready ({ps.backend} / {ps.model})")
    else:
        st.sidebar.warning("Gemini not ready: the Oracle is offline")
        st.sidebar.caption(ps.error or "API key missing")

    cols = st.sidebar.columns(2)
    with cols[0]:
        if st.button("Start run", disabled=ss.started, use_container_width=True):
            _start_run()
            st.rerun()
    with cols[1]:
        if st.button("Reset", use_container_width=True):
            _reset_run()
            st.rerun()

    export_import_controls()

    st.sidebar.markdown("---")
    if "next_page" in ss:
        ss.page = ss.pop("next_page")
    return st.sidebar.radio("Page", PAGES, key="page")


# =========================
# Main
# =========================


def main() -> None:
    _ensure_state()
    page = sidebar()

    ss = st.session_state

    if not ss.started:
        page_setup()
        return

    if ss.engine is None:
        st.error("Run state is missing. Hit Reset.")
        return

    if page == "Strategy":
        page_strategy()
    elif page == "Performance":
        page_performance()
    elif page == "NexusOracle":
        page_oracle()
    elif page == "Audit Logs":
        page_audit()
    else:
        page_debug()


if __name__ == "__main__":
    main()
