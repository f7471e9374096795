"""
Streamlit Frontend for the Palawan Portal

Two audiences use this app:
- Visitors read the investor pitch and the blog
- The team (admins) and investors open the project portal

DESIGN PRINCIPLES:
1. Investors see everything, change nothing
2. Every destructive action needs a second click
3. Clear messages in plain language, never a stack trace
4. Receipt scanning only proposes rows; an admin commits them

All state that matters lives in the record store. Streamlit session
state only holds what the current browser tab is doing (edit buffer,
armed delete, receipt review).
"""

import asyncio
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum

import streamlit as st

from portal import content
from portal.attachments import AttachmentSlot, resolve_all
from portal.blog import post_image_src, render_post_content
from portal.currency import Currency, format_currency_exact
from portal.models.blog import PostStatus
from portal.models.records import DriveLinkAttachment, RecordKind, UserRole
from portal.orchestrator import (
    PortalContext,
    attach_image,
    create_app_components,
    sync_project_to_sheets,
)
from portal.services.image import InvalidImageError
from portal.store.seed import PROJECTS
from portal.workspace import COLUMNS, ColumnType, CrudWorkspace, ReceiptReviewSession
from portal.workspace.csv_io import format_cell


# Page configuration
st.set_page_config(
    page_title="Palawan Portal",
    page_icon="🌴",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .tier-box {
        padding: 20px;
        background-color: #f8f9fa;
        border-radius: 10px;
        border-top: 5px solid #0f766e;
        margin: 10px 0;
        min-height: 220px;
    }
    .tier-amount {
        font-size: 1.6em;
        font-weight: bold;
        color: #2c3e50;
    }
    .notice-box {
        padding: 12px 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .post-body p {
        margin-bottom: 1em;
        line-height: 1.6;
    }
</style>
""", unsafe_allow_html=True)

KIND_LABELS = {
    RecordKind.TASKS: "📋 Tasks",
    RecordKind.LABOR: "👷 Labor",
    RecordKind.MATERIALS: "🧱 Materials",
}

# Fields computed at save time; shown read-only in the form
DERIVED_FIELDS = {
    RecordKind.LABOR: {"cost"},
    RecordKind.MATERIALS: {"total_cost"},
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_context() -> PortalContext:
    """Get or create application components (cached)."""
    try:
        return create_app_components()
    except Exception as e:
        st.error(f"Failed to open the data directory, using a temporary session: {e}")
        return create_app_components(in_memory=True)


def show_result(result) -> None:
    """Toast-style feedback for an ActionResult."""
    if not result.notice:
        return
    if result.ok:
        st.success(result.notice)
    else:
        st.warning(result.notice)


def flash(result) -> None:
    """Keep a result for the next run; st.rerun() discards anything drawn now."""
    if result.notice:
        st.session_state.flash = result


def render_flash() -> None:
    result = st.session_state.pop("flash", None)
    if result is not None:
        show_result(result)


def main():
    """Main application entry point."""
    context = get_context()

    st.sidebar.title("🌴 Palawan Portal")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏝️ Invest", "📰 Blog", "🔐 Portal", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    currency = st.sidebar.selectbox(
        "Currency",
        options=list(Currency),
        index=list(Currency).index(Currency(context.app_settings.default_currency)),
        format_func=lambda c: c.value,
    )

    if page == "🏝️ Invest":
        render_home_page(currency)
    elif page == "📰 Blog":
        render_blog_page(context)
    elif page == "🔐 Portal":
        render_portal_page(context)
    elif page == "⚙️ Settings":
        render_settings_page()


# =============================================================================
# PUBLIC SITE
# =============================================================================

def render_home_page(currency: Currency):
    """Render the investor pitch."""
    st.title("🏝️ Invest in Palawan")
    st.markdown(
        "Join us in capitalizing on Palawan's growth. "
        "We offer multiple tiers for strategic partnership."
    )

    st.markdown("### Funding Tiers")
    columns = st.columns(3)
    for column, tier in zip(columns, content.funding_tiers(currency)):
        with column:
            st.markdown(f"""
            <div class="tier-box">
                <h4>{tier.title}</h4>
                <p class="tier-amount">{tier.amount}</p>
                <p>{tier.benefit}</p>
            </div>
            """, unsafe_allow_html=True)

    st.markdown("### Key Metrics")
    for column, metric in zip(st.columns(4), content.key_metrics(currency)):
        with column:
            st.metric(metric.label, metric.value, help=metric.sublabel)

    st.markdown("### Revenue Projections")
    st.table([row.model_dump() for row in content.revenue_rows(currency)])

    st.markdown("### Villa Rollout")
    st.table([row.model_dump() for row in content.villa_rows(currency)])
    st.caption(content.ebitda_note(currency))


def render_blog_page(context: PortalContext):
    """Render published blog posts."""
    st.title("📰 News & Updates")

    posts = context.blog_store.published_posts()
    if not posts:
        st.info("No posts yet. Check back soon.")
        return

    for post in posts:
        st.markdown("---")
        st.subheader(post.title)
        st.caption(f"{post.author} · {post.publish_date}")
        image = post_image_src(post)
        if image:
            st.image(image, use_container_width=True)
        st.markdown(
            f'<div class="post-body">{render_post_content(post.content)}</div>',
            unsafe_allow_html=True,
        )
        if post.tags:
            st.caption(" ".join(f"#{tag}" for tag in post.tags))


# =============================================================================
# PORTAL
# =============================================================================

def get_workspace(context: PortalContext, role: UserRole, project_id: str) -> CrudWorkspace:
    """One workspace per browser tab; rebuilt when the role changes."""
    workspace = st.session_state.get("workspace")
    if workspace is None or workspace.role != role:
        workspace = context.workspace_for(role, project_id, today=date.today())
        st.session_state.workspace = workspace
    elif workspace.project_id != project_id:
        workspace.select_project(project_id)
    return workspace


def render_portal_page(context: PortalContext):
    """Render the project portal."""
    st.title("🔐 Project Portal")
    render_flash()

    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        role = st.selectbox(
            "Viewing as",
            options=list(UserRole),
            format_func=lambda r: r.value.title(),
        )
    with col2:
        project = st.selectbox(
            "Project",
            options=PROJECTS,
            format_func=lambda p: p.name,
        )
    with col3:
        reference_date = st.date_input("Week ending", value=date.today())

    workspace = get_workspace(context, role, project.id)

    if not workspace.can_mutate:
        st.markdown("""
        <div class="notice-box">
            👀 You are viewing as an investor. Changes are disabled.
        </div>
        """, unsafe_allow_html=True)

    render_weekly_totals(context, project.id, reference_date)

    tabs = st.tabs([KIND_LABELS[k] for k in RecordKind] + ["📰 Blog", "📜 Activity"])
    for tab, kind in zip(tabs, RecordKind):
        with tab:
            render_kind_tab(context, workspace, kind)
    with tabs[len(RecordKind)]:
        render_blog_manager(context, role)
    with tabs[len(RecordKind) + 1]:
        render_activity(context, project.id)


def render_weekly_totals(context: PortalContext, project_id: str, reference_date: date):
    project_totals = context.weekly_totals(project_id, reference_date)
    all_totals = context.all_projects_weekly_totals(reference_date)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Paid this week", format_currency_exact(project_totals.paid))
    col2.metric("Unpaid this week", format_currency_exact(project_totals.unpaid))
    col3.metric("Project total", format_currency_exact(project_totals.total))
    col4.metric("All projects", format_currency_exact(all_totals.total))


def render_kind_tab(context: PortalContext, workspace: CrudWorkspace, kind: RecordKind):
    """Table, form and CSV tools for one record kind."""
    if workspace.kind != kind:
        if st.button(f"Open {kind.value}", key=f"open-{kind.value}"):
            workspace.select_kind(kind)
            st.rerun()
        return

    columns = COLUMNS[kind]

    # Search and sort
    col1, col2, col3 = st.columns([3, 2, 1])
    with col1:
        search = st.text_input("Search", value=workspace.search, key=f"search-{kind.value}")
        if search != workspace.search:
            workspace.set_search(search)
    with col2:
        keys = [c.key for c in columns]
        sort_key = st.selectbox(
            "Sort by",
            options=keys,
            index=keys.index(workspace.sort.key) if workspace.sort.key in keys else 0,
            format_func=lambda k: next(c.label for c in columns if c.key == k),
            key=f"sort-{kind.value}",
        )
    with col3:
        st.caption(workspace.sort.direction.value)
        if st.button("↕️ Sort", key=f"sort-btn-{kind.value}"):
            workspace.request_sort(sort_key)
            st.rerun()

    records = workspace.visible_records()

    # Attachments: render what we can directly, then resolve the rest
    slots = {r.id: AttachmentSlot(r.id, r.attachment) for r in records}
    pending = [s for s in slots.values() if s.needs_lookup]
    if pending:
        run_async(resolve_all(pending, context.resolver))

    if not records:
        st.info("No records yet.")

    for record in records:
        render_record_row(workspace, kind, record, slots[record.id])

    st.markdown("---")

    if workspace.is_editing:
        render_edit_form(context, workspace, kind)
    elif st.button("➕ Add", key=f"add-{kind.value}"):
        flash(workspace.begin_add())
        st.rerun()

    render_csv_tools(workspace, kind)

    if kind == RecordKind.MATERIALS and context.receipt_flow is not None:
        render_receipt_scanner(context, workspace)


def render_record_row(workspace: CrudWorkspace, kind: RecordKind, record, slot: AttachmentSlot):
    summary_columns = COLUMNS[kind][:6]
    with st.container(border=True):
        col_text, col_image, col_actions = st.columns([5, 1, 2])
        with col_text:
            st.markdown(" · ".join(
                f"**{c.label}:** {format_cell(getattr(record, c.key)) or '—'}" for c in summary_columns
            ))
            if record.notes:
                st.caption(record.notes)
        with col_image:
            if slot.image.url:
                st.image(slot.image.url, width=80)
        with col_actions:
            paid_label = "✅ Paid" if record.paid else "⬜ Unpaid"
            if st.button(paid_label, key=f"paid-{record.id}"):
                flash(workspace.toggle_paid(record.id))
                st.rerun()
            if kind == RecordKind.MATERIALS:
                received_label = "📦 Received" if record.received else "🚚 Pending"
                if st.button(received_label, key=f"recv-{record.id}"):
                    flash(workspace.toggle_received(record.id))
                    st.rerun()
            if st.button("✏️ Edit", key=f"edit-{record.id}"):
                flash(workspace.begin_edit(record.id))
                st.rerun()

            if workspace.delete_confirmation.is_armed(record.id):
                if st.button("⚠️ Confirm delete", key=f"confirm-{record.id}", type="primary"):
                    flash(run_async(workspace.confirm_delete(record.id)))
                    st.rerun()
                if st.button("Cancel", key=f"cancel-{record.id}"):
                    workspace.cancel_delete()
                    st.rerun()
            elif st.button("🗑️ Delete", key=f"delete-{record.id}"):
                flash(workspace.request_delete(record.id))
                st.rerun()


def _to_decimal(value) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def render_edit_form(context: PortalContext, workspace: CrudWorkspace, kind: RecordKind):
    """Add/edit form over the workspace buffer."""
    buffer = workspace.buffer
    st.subheader("New record" if workspace.buffer_is_new else "Edit record")
    derived = DERIVED_FIELDS.get(kind, set())

    with st.form(key=f"form-{kind.value}"):
        values = {}
        for column in COLUMNS[kind]:
            current = getattr(buffer, column.key)
            widget_key = f"field-{kind.value}-{column.key}"
            disabled = column.key in derived

            if isinstance(current, Enum):
                options = list(type(current))
                values[column.key] = st.selectbox(
                    column.label, options, index=options.index(current),
                    format_func=lambda o: o.value, key=widget_key,
                )
            elif column.type == ColumnType.BOOLEAN:
                values[column.key] = st.checkbox(column.label, value=current, key=widget_key)
            elif column.type == ColumnType.INTEGER:
                values[column.key] = int(st.number_input(
                    column.label, value=int(current), step=1, key=widget_key,
                ))
            elif column.type in (ColumnType.NUMBER, ColumnType.CURRENCY):
                entered = st.number_input(
                    column.label,
                    value=None if current is None else float(current),
                    step=0.5,
                    disabled=disabled,
                    help="Calculated when saved" if disabled else None,
                    key=widget_key,
                )
                if not disabled:
                    values[column.key] = None if entered is None else _to_decimal(entered)
            elif column.type == ColumnType.TAGS:
                text = st.text_input(column.label, value=";".join(current), key=widget_key)
                values[column.key] = [t for t in text.split(";") if t.strip()]
            else:
                values[column.key] = st.text_input(column.label, value=current or "", key=widget_key)

        st.markdown("**Attachment**")
        image_file = st.file_uploader(
            "Photo",
            type=context.app_settings.supported_formats_list,
            key=f"image-{kind.value}",
        )
        drive_url = st.text_input("…or Google Drive link", key=f"drive-{kind.value}")

        col1, col2 = st.columns(2)
        submitted = col1.form_submit_button("💾 Save", type="primary")
        cancelled = col2.form_submit_button("Cancel")

    if cancelled:
        workspace.cancel_edit()
        st.rerun()

    if submitted:
        result = workspace.update_buffer(**values)
        if result.ok and image_file is not None:
            try:
                attachment = run_async(attach_image(context, image_file.read(), image_file.name))
                result = workspace.update_buffer(attachment=attachment)
            except InvalidImageError as e:
                st.error(f"That photo could not be used: {e}")
                return
        elif result.ok and drive_url.strip():
            result = workspace.update_buffer(attachment=DriveLinkAttachment(url=drive_url.strip()))

        if not result.ok:
            show_result(result)
            return
        flash(workspace.save())
        st.rerun()


def render_csv_tools(workspace: CrudWorkspace, kind: RecordKind):
    with st.expander("📄 CSV import / export"):
        st.download_button(
            "⬇️ Download CSV",
            data=workspace.export_csv(),
            file_name=f"{workspace.project_id}-{kind.value}.csv",
            mime="text/csv",
            key=f"export-{kind.value}",
        )
        uploaded = st.file_uploader("Import CSV", type=["csv"], key=f"import-{kind.value}")
        if uploaded is not None and st.button("⬆️ Import rows", key=f"import-btn-{kind.value}"):
            flash(workspace.import_csv(uploaded.read().decode("utf-8-sig")))
            st.rerun()


def render_receipt_scanner(context: PortalContext, workspace: CrudWorkspace):
    """Scan a receipt photo into reviewable material rows."""
    flow = context.receipt_flow
    st.markdown("---")
    st.subheader("🧾 Scan a receipt")

    if "receipt_session" not in st.session_state:
        st.session_state.receipt_session = ReceiptReviewSession()
    session: ReceiptReviewSession = st.session_state.receipt_session

    photo = st.file_uploader(
        "Receipt photo",
        type=context.app_settings.supported_formats_list,
        key="receipt-photo",
        help="Take a clear, well-lit photo of the whole receipt",
    )
    if photo is not None and session.outcome is None:
        if st.button("🔍 Read receipt", type="primary"):
            with st.spinner("Reading the receipt... Please wait."):
                run_async(flow.extract(photo.read(), photo.type or "image/jpeg", photo.name, session))
            st.rerun()

    outcome = session.outcome
    if outcome is None:
        return

    if outcome.fallback_to_manual:
        st.error(outcome.error)
        if st.button("✍️ Enter items manually"):
            session.close()
            st.session_state.receipt_session = ReceiptReviewSession()
            flash(workspace.begin_add())
            st.rerun()
        return

    review = outcome.review
    for warning in review.warnings:
        st.warning(warning)

    st.markdown("*Untick rows you don't want. You can edit any value before adding.*")
    for index, row in enumerate(review.rows):
        cols = st.columns([1, 4, 2, 2, 2, 3])
        selected = cols[0].checkbox("Add", value=row.selected, key=f"rc-sel-{index}")
        item = cols[1].text_input("Item", value=row.item, key=f"rc-item-{index}")
        qty = cols[2].number_input("Qty", value=float(row.qty), key=f"rc-qty-{index}")
        unit_cost = cols[3].number_input("Unit cost", value=float(row.unit_cost), key=f"rc-unit-{index}")
        cols[4].number_input("Total", value=float(row.total_cost), disabled=True, key=f"rc-total-{index}")
        category = cols[5].selectbox(
            "Category",
            options=list(type(row.category)),
            index=list(type(row.category)).index(row.category),
            format_func=lambda c: c.value,
            key=f"rc-cat-{index}",
        )
        review.update_row(
            index,
            selected=selected,
            item=item,
            qty=_to_decimal(qty),
            unit_cost=_to_decimal(unit_cost),
            category=category,
        )

    supplier = st.text_input("Supplier", key="rc-supplier")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("✅ Add selected rows", type="primary"):
            result = run_async(flow.commit(review, workspace.role, workspace.project_id, supplier=supplier))
            if result.ok:
                st.session_state.last_receipt_scan = review.correlation_id
                session.close()
                st.session_state.receipt_session = ReceiptReviewSession()
                flash(result)
                st.rerun()
            show_result(result)
    with col2:
        if st.button("❌ Discard"):
            session.close()
            st.session_state.receipt_session = ReceiptReviewSession()
            st.rerun()


def render_blog_manager(context: PortalContext, role: UserRole):
    """Admin editing of blog posts."""
    manager = context.blog_manager(role)

    editing_id = st.session_state.get("blog_editing")
    current = context.blog_store.get(editing_id) if editing_id else None

    for post in manager.posts():
        col1, col2, col3 = st.columns([6, 1, 1])
        col1.markdown(f"**{post.title}** · {post.status.value} · {post.publish_date}")
        if col2.button("✏️", key=f"blog-edit-{post.id}"):
            st.session_state.blog_editing = post.id
            st.rerun()
        if col3.button("🗑️", key=f"blog-del-{post.id}"):
            flash(manager.delete(post.id))
            st.rerun()

    st.markdown("---")
    st.subheader("Edit post" if current else "New post")
    with st.form(key="blog-form"):
        title = st.text_input("Title", value=current.title if current else "")
        author = st.text_input("Author", value=current.author if current else "")
        publish_date = st.text_input(
            "Publish date (YYYY-MM-DD)",
            value=current.publish_date if current else date.today().isoformat(),
        )
        status = st.selectbox(
            "Status",
            options=list(PostStatus),
            index=list(PostStatus).index(current.status) if current else 1,
            format_func=lambda s: s.value,
        )
        excerpt = st.text_area("Excerpt", value=current.excerpt if current else "")
        body = st.text_area(
            "Content",
            value=current.content if current else "",
            height=240,
            help="Blank line starts a new paragraph. Use **text** for bold.",
        )
        image_url = st.text_input("Image URL", value=current.image_url if current else "")
        tags = st.text_input("Tags (;-separated)", value=";".join(current.tags) if current else "")
        submitted = st.form_submit_button("💾 Save post", type="primary")

    if submitted:
        result = manager.save({
            "id": editing_id,
            "title": title,
            "author": author,
            "publish_date": publish_date,
            "status": status,
            "excerpt": excerpt,
            "content": body,
            "image_url": image_url,
            "tags": tags.split(";"),
        })
        if result.ok:
            st.session_state.blog_editing = None
            flash(result)
            st.rerun()
        show_result(result)


def render_activity(context: PortalContext, project_id: str):
    """Recent audit events and the optional sheet sync."""
    if context.record_store.last_write_error:
        st.error(f"Last save to disk failed: {context.record_store.last_write_error}")

    if context.task_table is not None and st.button("🔄 Sync project to Google Sheets"):
        with st.spinner("Syncing..."):
            try:
                rows = run_async(sync_project_to_sheets(context, project_id))
                st.success(f"Synced {rows} rows.")
            except Exception as e:
                st.error(f"Sync failed: {str(e)}")

    last_scan = st.session_state.get("last_receipt_scan")
    if last_scan is not None:
        with st.expander("🧾 Last receipt scan"):
            st.table(_event_rows(context.audit_logger.events_for_correlation(last_scan)))

    events = context.audit_logger.recent_events(limit=50)
    if not events:
        st.info("No activity yet.")
        return
    st.table(_event_rows(events))


def _event_rows(events) -> list[dict]:
    return [
        {
            "time": e.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            "event": e.event_type.value,
            "severity": e.severity.value,
            "description": e.description,
        }
        for e in events
    ]


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    from portal.config import validate_all_settings

    status = validate_all_settings()

    services = [
        ("Gemini (Receipt scanning)", "gemini"),
        ("Cloudinary (Image uploads)", "cloudinary"),
        ("Google Sheets (Task sync)", "google_sheets"),
        ("Local storage", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the available variables. Services that are not "
        "configured are simply hidden; the portal always works with local storage."
    )


if __name__ == "__main__":
    main()
