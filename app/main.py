import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dataclasses import replace
from datetime import date
from decimal import Decimal

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from ledger.config import load_settings
from ledger.domain import (
    Account,
    AccountKind,
    Category,
    FilterOptions,
    Goal,
    InvestmentAsset,
    InvestmentType,
    ScheduleMode,
    Transaction,
    TransactionStatus,
    TransactionType,
    new_id,
)
from ledger.events import BUDGET_ALERT
from ledger.functional import validate_transaction
from ledger.investments import opportunities, portfolio_totals, simulate
from ledger.lazy import lazy_top_categories
from ledger.logging_setup import configure_logging
from ledger.reports import (
    budget_usage,
    card_usage,
    invoice_totals,
    monthly_cashflow,
    period_totals,
    reserve_balance,
    total_balance,
)
from ledger.rules import infer_category
from ledger.storage import JsonFileStorage, load_seed
from ledger.store import LedgerStore

settings = load_settings()
configure_logging(settings.log_level)

st.set_page_config(page_title="Finance Ledger", layout="wide")


def open_store() -> LedgerStore:
    seed = load_seed(settings.seed_path) if settings.seed_path.exists() else None
    store = LedgerStore.open(JsonFileStorage(settings.data_path), fallback=seed, settings=settings)
    store.bus.subscribe(BUDGET_ALERT, remember_alert)
    return store


def remember_alert(event, payload: dict) -> dict:
    st.session_state.setdefault("alerts", []).append(
        f"{payload['message']}: {money(payload['spent'])} of {money(payload['limit'])}"
    )
    return {}


def money(value) -> str:
    return f"{float(value):,.2f} {settings.currency}"


if "store" not in st.session_state:
    st.session_state.store = open_store()

store: LedgerStore = st.session_state.store
data = store.data
account_names = {a.id: a.name for a in data.accounts}
category_names = {c.id: c.name for c in data.categories}


def tx_to_df(tx_list) -> pd.DataFrame:
    rows = []
    for t in tx_list:
        rows.append({
            "id": t.id,
            "date": pd.to_datetime(t.date),
            "description": t.description,
            "type": t.type.value,
            "status": t.status.value,
            "amount": float(t.amount),
            "category": category_names.get(t.category_id, "Uncategorized"),
            "account": account_names.get(t.account_id, t.account_id),
            "invoice": t.invoice_month or "",
        })
    return pd.DataFrame(rows, columns=["id", "date", "description", "type", "status", "amount", "category", "account", "invoice"])


menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "🧾 Transactions", "📥 Import", "💰 Budgets", "💳 Cards", "🎯 Goals", "📈 Investments", "⚙️ Settings"]
)

if st.session_state.get("alerts"):
    for alert in st.session_state.alerts[-3:]:
        st.sidebar.warning(alert)
    if st.sidebar.button("Clear alerts"):
        st.session_state.alerts = []
        st.rerun()

if menu == "🏠 Overview":
    st.title("🏠 Overview")
    visible = store.visible_transactions()
    totals = period_totals(visible)

    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Total Balance", money(total_balance(data.accounts)))
    with k2:
        st.metric("Reserves", money(reserve_balance(data.accounts)))
    with k3:
        st.metric("Income (month)", money(totals["income"]))
    with k4:
        st.metric("Expenses (month)", money(totals["expense"]))

    flow = monthly_cashflow(data.transactions, store.view.month)
    labels = [p.strftime("%b %y") for p in flow.index]
    fig_ts = go.Figure()
    fig_ts.add_trace(go.Scatter(x=labels, y=flow["income"].values, mode="lines+markers", name="Income"))
    fig_ts.add_trace(go.Scatter(x=labels, y=flow["expense"].values, mode="lines+markers", name="Expense"))
    fig_ts.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
    st.plotly_chart(fig_ts, use_container_width=True)

    col_bills, col_top = st.columns(2)
    with col_bills:
        st.subheader("⏰ Upcoming bills")
        bills = store.upcoming_bills()
        if bills:
            st.table(tx_to_df(bills)[["date", "description", "amount", "account"]])
        else:
            st.info(f"No pending bills in the next {settings.upcoming_days} days.")
    with col_top:
        st.subheader("📊 Top categories")
        top = list(lazy_top_categories(visible, data.categories, k=5))
        if top:
            df_top = pd.DataFrame(top, columns=["Category", "Total"]).astype({"Total": float})
            st.plotly_chart(px.pie(df_top, values="Total", names="Category"), use_container_width=True)
        else:
            st.info("No expenses this month.")

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")

    nav_prev, nav_label, nav_next = st.columns([1, 3, 1])
    with nav_prev:
        if st.button("◀", key="month_prev"):
            store.change_month(-1)
            st.rerun()
    with nav_label:
        st.subheader(store.view.month.strftime("%B %Y"))
    with nav_next:
        if st.button("▶", key="month_next"):
            store.change_month(1)
            st.rerun()

    search = st.text_input("Search", value=store.view.search_text)
    if search != store.view.search_text:
        store.set_search(search)

    with st.expander("Filters"):
        f1, f2, f3 = st.columns(3)
        with f1:
            use_range = st.checkbox("Date range")
            date_range = st.date_input("Period", value=(store.view.month, date.today()))
        with f2:
            acc_choice = st.selectbox("Account", ["All"] + [a.name for a in data.accounts])
            status_choice = st.selectbox("Status", ["All"] + [s.value for s in TransactionStatus])
        with f3:
            type_choice = st.selectbox("Type", ["All"] + [t.value for t in TransactionType])
        start, end = (date_range if use_range and len(date_range) == 2 else (None, None))
        store.set_filters(FilterOptions(
            start_date=start,
            end_date=end,
            account_id=next((a.id for a in data.accounts if a.name == acc_choice), None),
            status=None if status_choice == "All" else TransactionStatus(status_choice),
            type=None if type_choice == "All" else TransactionType(type_choice),
        ))

    visible = store.visible_transactions()
    df = tx_to_df(visible)
    if df.empty:
        st.info("No transactions match the current view.")
    else:
        disp = df.assign(date=df["date"].dt.strftime("%d/%m/%Y"), amount=df["amount"].map(money))
        st.dataframe(disp.drop(columns=["id"]), use_container_width=True)
        st.download_button("⬇ Download CSV", df.to_csv(index=False), file_name="transactions.csv")

        labels = {t.id: f"{t.date:%d/%m} {t.description} ({money(t.amount)}, {t.status.value})" for t in visible}
        chosen = st.selectbox("Transaction", list(labels), format_func=labels.get)
        b1, b2 = st.columns(2)
        with b1:
            if st.button("Toggle paid / pending"):
                store.toggle_status(chosen)
                st.rerun()
        with b2:
            if st.button("Delete"):
                store.delete_transaction(chosen)
                st.rerun()

        original = next(t for t in visible if t.id == chosen)
        with st.expander("✏️ Edit transaction"):
            with st.form(f"edit_{chosen}"):
                e1, e2 = st.columns(2)
                with e1:
                    new_desc = st.text_input("Description", value=original.description, key=f"edit_desc_{chosen}")
                    new_amount = st.number_input(
                        "Amount", min_value=0.01, value=float(original.amount), step=10.0, format="%.2f", key=f"edit_amount_{chosen}"
                    )
                    new_date = st.date_input("Date", value=original.date, key=f"edit_date_{chosen}")
                with e2:
                    statuses = [s.value for s in TransactionStatus]
                    new_status = st.selectbox("Status", statuses, index=statuses.index(original.status.value), key=f"edit_status_{chosen}")
                    edit_accounts = [a.name for a in data.accounts]
                    current_acc = next((a.name for a in data.accounts if a.id == original.account_id), edit_accounts[0])
                    new_account = st.selectbox("Account", edit_accounts, index=edit_accounts.index(current_acc), key=f"edit_account_{chosen}")
                    edit_cats = ["(none)"] + [c.name for c in data.categories if c.type is original.type]
                    current_cat = next((c.name for c in data.categories if c.id == original.category_id), "(none)")
                    new_cat = st.selectbox(
                        "Category", edit_cats, index=edit_cats.index(current_cat) if current_cat in edit_cats else 0,
                        disabled=original.type is TransactionType.TRANSFER, key=f"edit_category_{chosen}",
                    )
                if st.form_submit_button("Save changes") and new_desc:
                    updated = replace(
                        original,
                        description=new_desc,
                        amount=Decimal(str(new_amount)),
                        date=new_date,
                        status=TransactionStatus(new_status),
                        account_id=next(a.id for a in data.accounts if a.name == new_account),
                        category_id=None if original.type is TransactionType.TRANSFER
                        else next((c.id for c in data.categories if c.name == new_cat and c.type is original.type), None),
                    )
                    result = validate_transaction(updated, data.accounts)
                    if result.is_left():
                        st.error(result.get_error()["message"])
                    else:
                        store.edit_transaction(chosen, updated)
                        st.rerun()

    st.divider()
    st.subheader("➕ Add Transaction")
    tx_type = TransactionType(st.radio("Type", [t.value for t in TransactionType], horizontal=True))
    with st.form("input_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            tx_date = st.date_input("Date")
            amount = st.number_input("Amount", min_value=0.0, step=10.0, format="%.2f")
            description = st.text_input("Description")
            status = st.selectbox("Status", [s.value for s in TransactionStatus], index=1)
        with col2:
            account = st.selectbox("Account", [a.name for a in data.accounts])
            to_account = st.selectbox("To account (transfers)", [a.name for a in data.accounts])
            typed_cats = [c for c in data.categories if c.type is tx_type]
            category = st.selectbox("Category", ["(suggest)"] + [c.name for c in typed_cats])
            mode = ScheduleMode(st.selectbox("Mode", [m.value for m in ScheduleMode]))
            count = st.number_input("Installments / repeats", min_value=2, value=12, step=1)
        submitted = st.form_submit_button("Add Transaction")

        if submitted and amount > 0 and description:
            acc_id = next(a.id for a in data.accounts if a.name == account)
            cat_id = next((c.id for c in typed_cats if c.name == category), None)
            subcategory = None
            if cat_id is None:
                match = infer_category(description, data.categories, tx_type)
                cat_id, subcategory = match.category_id, match.subcategory
            base = Transaction(
                id="",
                description=description,
                amount=Decimal(str(amount)),
                type=tx_type,
                date=tx_date,
                account_id=acc_id,
                status=TransactionStatus(status),
                category_id=None if tx_type is TransactionType.TRANSFER else cat_id,
                subcategory=subcategory,
                to_account_id=next(a.id for a in data.accounts if a.name == to_account)
                if tx_type is TransactionType.TRANSFER else None,
            )
            result = validate_transaction(base, data.accounts)
            if result.is_left():
                st.error(result.get_error()["message"])
            else:
                if cat_id and mode is ScheduleMode.SINGLE and tx_type is TransactionType.EXPENSE:
                    if store.is_anomalous(cat_id, base.amount):
                        avg = store.category_stats(cat_id).average
                        st.session_state.setdefault("alerts", []).append(
                            f"{description}: amount is well above the category average ({money(avg)})"
                        )
                store.add_transaction(base, mode, int(count))
                st.success("✅ Transaction added!")
                st.rerun()

elif menu == "📥 Import":
    st.title("📥 Import statements")
    account = st.selectbox("Account", [a.name for a in data.accounts])
    acc_id = next(a.id for a in data.accounts if a.name == account)
    uploaded = st.file_uploader("OFX or CSV file", type=["ofx", "csv", "txt"])
    separator = st.text_input("CSV separator", value=settings.csv_separator)

    if uploaded is not None:
        text = uploaded.getvalue().decode("utf-8", errors="replace")
        is_ofx = uploaded.name.lower().endswith(".ofx")
        staged = store.stage_ofx(text, acc_id) if is_ofx else store.stage_csv(text, acc_id, separator)
        if not staged:
            st.warning("No usable transactions found in this file.")
        else:
            preview = tx_to_df([item.transaction for item in staged])
            preview["duplicate"] = [item.possible_duplicate for item in staged]
            st.dataframe(preview.drop(columns=["id", "invoice"]), use_container_width=True)
            new_count = int((~preview["duplicate"]).sum())
            st.caption(f"{new_count} new, {len(staged) - new_count} possible duplicates")
            if st.button("Import new transactions"):
                imported = store.commit_staged(staged, "ofx" if is_ofx else "csv")
                st.success(f"Imported {imported} transactions.")
                st.rerun()

elif menu == "💰 Budgets":
    st.title("💰 Monthly budgets")
    st.caption(store.view.month.strftime("%B %Y"))
    for usage in budget_usage(data.categories, store.visible_transactions()):
        c1, c2 = st.columns([3, 1])
        with c1:
            st.metric(usage.name, f"{money(usage.spent)} / {money(usage.limit)}")
            st.progress(min(1.0, float(usage.percent) / 100))
            if usage.level == "over":
                st.error("Budget exceeded")
        with c2:
            new_limit = st.number_input("Limit", min_value=0.0, value=float(usage.limit), key=f"limit_{usage.category_id}")
            if st.button("Save", key=f"save_{usage.category_id}"):
                store.update_category(usage.category_id, budget_limit=Decimal(str(new_limit)))
                st.rerun()

elif menu == "💳 Cards":
    st.title("💳 Credit cards")
    cards = [a for a in data.accounts if a.is_credit_card]
    for card in cards:
        usage = card_usage(card)
        st.subheader(card.name)
        m1, m2, m3 = st.columns(3)
        with m1:
            st.metric("Current invoice", money(usage.used))
        with m2:
            st.metric("Available", money(usage.available))
        with m3:
            st.metric("Closes / due", f"{card.closing_day or '-'} / {card.due_day or '-'}")
        st.progress(min(1.0, float(usage.percent) / 100))
        invoices = invoice_totals(data.transactions, card.id)
        if invoices:
            df_inv = pd.DataFrame({"Invoice": list(invoices), "Total": [float(v) for v in invoices.values()]})
            st.plotly_chart(px.bar(df_inv, x="Invoice", y="Total", template="plotly_dark"), use_container_width=True)
        if st.button("Delete card", key=f"del_{card.id}"):
            store.delete_account(card.id)
            st.rerun()

    with st.form("new_account"):
        st.write("**New account**")
        name = st.text_input("Name")
        kind = AccountKind(st.selectbox("Kind", [k.value for k in AccountKind], index=4))
        limit = st.number_input("Credit limit", min_value=0.0, step=100.0)
        closing = st.number_input("Closing day", min_value=1, max_value=31, value=1)
        due = st.number_input("Due day", min_value=1, max_value=31, value=10)
        if st.form_submit_button("Add account") and name:
            is_card = kind is AccountKind.CREDIT_CARD
            store.add_account(Account(
                id=new_id(),
                name=name,
                kind=kind,
                credit_limit=Decimal(str(limit)) if is_card else None,
                closing_day=int(closing) if is_card else None,
                due_day=int(due) if is_card else None,
            ))
            st.rerun()

elif menu == "🎯 Goals":
    st.title("🎯 Goals")
    for goal in data.goals:
        progress = float(goal.current_amount / goal.target_amount) if goal.target_amount else 0.0
        st.metric(goal.name, f"{money(goal.current_amount)} / {money(goal.target_amount)}", f"until {goal.deadline:%d/%m/%Y}")
        st.progress(min(1.0, max(0.0, progress)))
        g1, g2 = st.columns([3, 1])
        with g1:
            extra = st.number_input("Add amount", min_value=0.0, step=50.0, key=f"goal_{goal.id}")
        with g2:
            if st.button("Add", key=f"goal_add_{goal.id}") and extra > 0:
                store.add_to_goal(goal.id, Decimal(str(extra)))
                st.rerun()

    with st.form("new_goal"):
        name = st.text_input("Goal")
        target = st.number_input("Target", min_value=0.0, step=100.0)
        deadline = st.date_input("Deadline")
        if st.form_submit_button("Create goal") and name and target > 0:
            store.add_goal(Goal(new_id(), name, Decimal(str(target)), Decimal("0"), deadline))
            st.rerun()

elif menu == "📈 Investments":
    st.title("📈 Investments")
    today = date.today()
    totals = portfolio_totals(data.investments, today)
    i1, i2, i3 = st.columns(3)
    with i1:
        st.metric("Applied", money(totals["applied"]))
    with i2:
        st.metric("Projected gross", money(totals["gross"]))
    with i3:
        st.metric("Projected net", money(totals["net"]))

    if data.investments:
        rows = []
        for asset in data.investments:
            p = simulate(asset, today)
            rows.append({"Asset": asset.name, "Type": asset.type.value, "Days": p.days,
                         "Gross": float(p.gross), "Net": float(p.net), "Net yield": float(p.net_yield)})
        st.dataframe(pd.DataFrame(rows), use_container_width=True)
        for note in opportunities(data.investments, today):
            st.info(note)

    with st.form("new_investment"):
        name = st.text_input("Name")
        inst = st.text_input("Institution")
        inv_type = InvestmentType(st.selectbox("Type", [t.value for t in InvestmentType]))
        principal = st.number_input("Principal", min_value=0.0, step=100.0)
        rate = st.number_input("Annual rate (%)", min_value=0.0, value=12.0)
        start = st.date_input("Start date")
        if st.form_submit_button("Add investment") and name and inst and principal > 0:
            store.add_investment(InvestmentAsset(
                id=new_id(), name=name, type=inv_type, institution=inst,
                principal=Decimal(str(principal)), annual_rate=Decimal(str(rate)), start_date=start,
            ))
            st.rerun()

elif menu == "⚙️ Settings":
    st.title("⚙️ Settings")
    st.download_button("⬇ Export backup (JSON)", store.export_document(), file_name="ledger_backup.json")
    backup = st.file_uploader("Restore backup", type=["json"])
    if backup is not None and st.button("Restore"):
        if store.import_document(backup.getvalue().decode("utf-8", errors="replace")):
            st.success("Backup restored.")
        else:
            st.error("This file is not a valid backup; nothing was changed.")

    st.subheader("Categories")
    for cat in data.categories:
        c1, c2 = st.columns([4, 1])
        with c1:
            st.write(f"**{cat.name}** ({cat.type.value}): {', '.join(cat.subcategories) or '-'}")
        with c2:
            if st.button("Delete", key=f"cat_del_{cat.id}"):
                store.delete_category(cat.id)
                st.rerun()
    with st.form("new_category"):
        name = st.text_input("Category name")
        cat_type = TransactionType(st.selectbox("Category type", ["expense", "income"]))
        color = st.color_picker("Color", "#6b7280")
        if st.form_submit_button("Add category") and name:
            store.add_category(Category(new_id(), name, cat_type, color))
            st.rerun()
    with st.form("new_subcategory"):
        parent = st.selectbox("Parent category", [c.name for c in data.categories])
        sub_name = st.text_input("Subcategory")
        if st.form_submit_button("Add subcategory") and parent:
            store.add_subcategory(next(c.id for c in data.categories if c.name == parent), sub_name)
            st.rerun()

    st.subheader("Account balances")
    bal = pd.DataFrame({
        "Account": [a.name for a in data.accounts],
        "Balance": np.array([float(a.balance) for a in data.accounts], dtype=float),
    })
    st.table(bal)
    acc_name = st.selectbox("Override balance of", [a.name for a in data.accounts])
    new_balance = st.number_input("New balance", step=100.0)
    if st.button("Set balance"):
        store.update_account_balance(next(a.id for a in data.accounts if a.name == acc_name), Decimal(str(new_balance)))
        st.rerun()
