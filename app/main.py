import logging
import os
import sys

import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from configurator.cart import CartStore, JsonCartStorage
from configurator.config import settings
from configurator.fabrics import FABRIC_PLANS, FabricCatalog
from configurator.pricing import calculate_quick_quote
from configurator.service import CatalogService, OrderService
from configurator.session import SessionState
from configurator.transforms import by_price_range, load_seed
from configurator.visibility import hidden_values

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)


# ============ Кэширование данных ============
@st.cache_data
def get_data():
    return load_seed(settings.seed_path)


@st.cache_resource
def get_fabric_catalog():
    return FabricCatalog()


# ============ Инициализация ============
st.set_page_config(
    page_title="Luxury Sofa Atelier",
    page_icon="🛋️",
    layout="wide",
    initial_sidebar_state="expanded",
)

categories, models, attributes, options = get_data()
catalog = CatalogService(categories, models, attributes, options, get_fabric_catalog())

# Корзина - один экземпляр на сессию браузера, передаётся явно
if "cart" not in st.session_state:
    st.session_state.cart = CartStore(JsonCartStorage(settings.cart_path))

if "orders" not in st.session_state:
    st.session_state.orders = OrderService(st.session_state.cart, settings.currency)

if "sessions" not in st.session_state:
    st.session_state.sessions = {}

cart: CartStore = st.session_state.cart


def format_price(amount: float) -> str:
    return f"₹{round(amount):,}"


def session_for(category_id: str):
    """Сессия конфигуратора категории живёт, пока открыта вкладка"""
    sessions = st.session_state.sessions
    if category_id not in sessions:
        session = catalog.open_configurator(category_id, cart=cart)
        session.select_default_model()
        sessions[category_id] = session
    return sessions[category_id]


# ============ HEADER ============
st.title("🛋️ Luxury Sofa Atelier")
st.caption(f"🛒 {cart.item_count()} item(s) in cart | {format_price(cart.total_price())}")

# ============ SIDEBAR - Навигация ============
with st.sidebar:
    st.header("📂 Navigation")
    page = st.radio(
        "Section:",
        [
            "🏪 Collections",
            "🎨 Configurator",
            "⚡ Quick Quote",
            "🧵 Fabrics",
            "🛒 Cart",
            "🧾 Orders",
        ],
        label_visibility="collapsed",
    )


# ============ PAGE: КОЛЛЕКЦИИ ============
if page == "🏪 Collections":
    st.header("🏪 Collections")

    prices = [m.base_price for m in catalog.models] or [0]
    low, high = st.slider(
        "💰 Base price range",
        min_value=min(prices),
        max_value=max(max(prices), min(prices) + 1),
        value=(min(prices), max(max(prices), min(prices) + 1)),
        step=1000,
    )
    in_range = by_price_range(low, high)

    for category in catalog.active_categories():
        st.subheader(category.name)
        for model in filter(in_range, catalog.models_for(category.id)):
            cols = st.columns([4, 2, 4])
            with cols[0]:
                st.markdown(f"**{model.name}**")
                st.caption(model.description)
            with cols[1]:
                st.write(f"from {format_price(model.base_price)}")
            with cols[2]:
                st.caption(" · ".join(model.features))
        st.divider()


# ============ PAGE: КОНФИГУРАТОР ============
elif page == "🎨 Configurator":
    names = [c.name for c in catalog.active_categories()]
    chosen = st.selectbox("📂 Category", names, key="cfg_category")
    category = catalog.category_by_slug(chosen).get_or_else(None)

    if category is None:
        st.warning("Category not found.")
    else:
        session = session_for(category.id)
        st.header(f"🎨 Configure your {category.name}")

        left, right = st.columns([2, 1])

        with left:
            model_names = [m.name for m in session.models]
            if model_names:
                current = session.config.get("model")
                index = model_names.index(current) if current in model_names else 0
                picked = st.selectbox("Model", model_names, index=index, key=f"model_{category.id}")
                if picked != current:
                    session.select_model(picked)

            # Видимость пересчитывается на каждом перезапуске скрипта
            for attribute in session.visible_attributes:
                opts = session.options_by_attribute_id.get(attribute.id, ())
                label = f"{attribute.label}{' *' if attribute.required else ''}"
                if attribute.is_multiselect:
                    selected = st.multiselect(
                        label,
                        [o.value for o in opts],
                        default=list(session.config.get(attribute.name) or []),
                        format_func=lambda v, opts=opts: next(
                            (f"{o.label} (+{format_price(o.price_modifier)})" for o in opts if o.value == v), v
                        ),
                        key=f"attr_{attribute.id}",
                    )
                    if list(session.config.get(attribute.name) or []) != selected:
                        session.set_value(attribute.name, selected)
                else:
                    values = [""] + [o.value for o in opts]
                    current = session.config.get(attribute.name, "")
                    value = st.selectbox(
                        label,
                        values,
                        index=values.index(current) if current in values else 0,
                        format_func=lambda v, opts=opts: "—" if v == "" else next(
                            (
                                f"{o.label} (+{format_price(o.price_modifier)})" if o.price_modifier else o.label
                                for o in opts
                                if o.value == v
                            ),
                            v,
                        ),
                        key=f"attr_{attribute.id}",
                    )
                    if value != current:
                        if value:
                            session.set_value(attribute.name, value)
                        else:
                            session.clear_value(attribute.name)

            st.divider()
            st.subheader("🧵 Fabric")
            plans = list(FABRIC_PLANS)
            plan = session.config.get("fabricPlan", plans[0])
            new_plan = st.radio("Fabric plan", plans, index=plans.index(plan) if plan in plans else 0, horizontal=True,
                                key=f"plan_{category.id}")
            if new_plan != plan or "fabricCodes" not in session.config:
                session.set_fabric_plan(new_plan)

            fabric_codes = [""] + [f.code for f in catalog.fabrics.fabrics]
            for slot, code in enumerate(session.fabric_codes):
                picked_code = st.selectbox(
                    f"Colour {slot + 1}",
                    fabric_codes,
                    index=fabric_codes.index(code) if code in fabric_codes else 0,
                    format_func=lambda c: "—" if c == "" else catalog.fabrics.get(c).map(
                        lambda f: f"{f.code} · {f.description} ({format_price(f.price_per_meter)}/m)"
                    ).get_or_else(c),
                    key=f"fabric_{category.id}_{slot}",
                )
                if picked_code != code:
                    session.set_fabric_code(slot, picked_code)

        with right:
            breakdown = session.price_breakdown()
            fabric = session.fabric_breakdown()

            st.metric("💰 Current price", format_price(breakdown.total))
            st.write(f"Base: {format_price(breakdown.base_price)}")
            st.write(f"Options: {format_price(breakdown.modifier_total)}")
            st.write(f"Fabric ({fabric.total_meters} m): {format_price(breakdown.fabric_cost)}")
            st.write(f"Fabric upgrade: {format_price(breakdown.upgrade_cost)}")

            hidden = hidden_values(session.attributes, session.config)
            if hidden:
                st.caption(
                    "Hidden selections still priced: "
                    + ", ".join(f"{k}: {v}" for k, v in hidden.items())
                )

            state = session.state
            if state == SessionState.COMPLETE:
                st.success("✅ Configuration complete")
            else:
                missing = ", ".join(a.label for a in session.missing_required())
                st.info(f"Still to choose: {missing or 'model'}")

            if st.button("🛒 Add to cart", type="primary", use_container_width=True,
                         disabled=state == SessionState.EMPTY):
                result = session.add_to_cart()
                if result.is_right:
                    item = result.get_or_else(None)
                    st.success(f"✅ {item.model_name} added for {format_price(item.price)}")
                else:
                    st.error(f"❌ {result.value['error']}")

            if st.button("💾 Save configuration", use_container_width=True):
                saved = session.save_configuration()
                if saved.is_right:
                    st.json(saved.get_or_else(None).__dict__, expanded=False)
                else:
                    st.error(f"❌ {saved.value['error']}")


# ============ PAGE: БЫСТРЫЙ РАСЧЁТ ============
elif page == "⚡ Quick Quote":
    st.header("⚡ Quick quote")

    col1, col2 = st.columns(2)
    with col1:
        seats = st.selectbox("Seats", [1, 2, 3, 123], format_func=lambda s: "1+2+3 set" if s == 123 else str(s))
        seat_width = st.slider("Seat width (in)", 20, 36, 28)
        needs_lounger = st.checkbox("Lounger")
        lounger_length = st.slider("Lounger length (ft)", 5.0, 7.0, 6.0, step=0.5, disabled=not needs_lounger)
        armrest = st.selectbox("Armrest", ["smug", "ocean", "box"])
        needs_corner = st.checkbox("Corner unit")
    with col2:
        needs_console = st.checkbox("Console")
        console_type = st.selectbox("Console size", ['6"', '8"', '10"'], disabled=not needs_console)
        console_count = st.number_input("Consoles", min_value=1, max_value=4, value=1, disabled=not needs_console)
        wood = st.selectbox("Wood", ["neem", "pine"])
        foam = st.selectbox("Foam", ["standard", "latex"])
        plan = st.selectbox("Fabric plan", ["single", "dual", "triple"])
        accessories = st.multiselect("Accessories", ["cushions", "throw", "footrest", "side table"])

    quote_config = {
        "seats": seats,
        "seatWidth": seat_width,
        "needsLounger": needs_lounger,
        "loungerLength": lounger_length,
        "armRestType": armrest,
        "needsConsole": needs_console,
        "consoleType": console_type,
        "consoleCount": int(console_count),
        "needsCorner": needs_corner,
        "woodType": wood,
        "seatFoam": foam,
        "fabricPlan": plan,
        "accessories": accessories,
    }
    st.metric("💰 Estimated price", format_price(calculate_quick_quote(quote_config)))


# ============ PAGE: ТКАНИ ============
elif page == "🧵 Fabrics":
    st.header("🧵 Fabric library")

    col1, col2 = st.columns(2)
    with col1:
        term = st.text_input("🔍 Search", key="fabric_search")
    with col2:
        fabric_category = st.selectbox("Category", ["all"] + list(catalog.fabrics.categories()))

    found = catalog.fabrics.search(term, fabric_category)
    st.info(f"🔍 Found **{len(found)}** fabric(s)")
    for f in found:
        cols = st.columns([1, 5, 2, 2])
        with cols[0]:
            st.color_picker("", f.color_hex, key=f"swatch_{f.code}", disabled=True, label_visibility="collapsed")
        with cols[1]:
            st.markdown(f"**{f.description}** · `{f.code}`")
            st.caption(f"{f.company} · {f.collection} · {f.texture}")
        with cols[2]:
            st.write(f"{format_price(f.price_per_meter)}/m")
        with cols[3]:
            st.write(f"+{format_price(f.upgrade_charges)}/m")


# ============ PAGE: КОРЗИНА ============
elif page == "🛒 Cart":
    st.header("🛒 Your cart")

    if not cart.items:
        st.info("🛍️ Your cart is empty. Configure a piece first!")
    else:
        for item in cart.items:
            cols = st.columns([5, 2, 1])
            with cols[0]:
                st.write(f"**{item.model_name}**")
                st.caption(
                    ", ".join(
                        f"{k}: {', '.join(v) if isinstance(v, tuple) else v}"
                        for k, v in item.config.items()
                        if v not in ("", None, ())
                    )
                )
            with cols[1]:
                st.write(format_price(item.price))
            with cols[2]:
                if st.button("🗑️", key=f"remove_{item.id}"):
                    cart.remove(item.id)
                    st.rerun()

        st.divider()
        st.markdown(f"### 💰 Total: **{format_price(cart.total_price())}**")
        st.caption("Free delivery and installation")

        notes = st.text_area("Notes for our atelier")
        address = st.text_input("Delivery address")

        if st.button("✅ Place order", type="primary", use_container_width=True):
            result = st.session_state.orders.place_order(notes, address)
            if result.is_right:
                order = result.get_or_else(None)
                st.success(f"🎉 Order {order.order_number} placed! Total: {format_price(order.total_amount)}")
                st.balloons()
            else:
                st.error(f"❌ {result.value['error']}")


# ============ PAGE: ЗАКАЗЫ ============
elif page == "🧾 Orders":
    st.header("🧾 Your orders")

    history = st.session_state.orders.history()
    if not history:
        st.info("Your orders will appear here once you make a purchase.")
    for order in history:
        with st.expander(f"Order #{order.order_number} · {order.status} · {format_price(order.total_amount)}"):
            st.caption(f"Placed {order.created_at}")
            for line in order.items:
                st.write(f"• {line.model_name}: {format_price(line.item_price)}")
            if order.delivery_address:
                st.write(f"**Delivery:** {order.delivery_address}")
