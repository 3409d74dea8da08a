"""Tests for the generation queue, classifier and architecture plan."""

import pytest
from hypothesis import given, settings as hypothesis_settings, strategies as st

from planner import build_architecture_plan, build_generation_queue, build_tree, classify
from planner.classifier import endpoint_for, entity_name
from planner.models import ComponentKind, ComponentNode, ServerAction
from planner.queue import queue_by_level


def _node(name: str, description: str = "", kind: str | None = None, level: int = 1, tags=None) -> ComponentNode:
    return ComponentNode(
        name=name,
        description=description,
        kind=ComponentKind.coerce(kind),
        level=level,
        tags=tags or [],
    )


# ============================================================================
# Queue
# ============================================================================

@pytest.mark.unit
def test_queue_excludes_root_and_is_level_ordered(hierarchical_spec):
    queue = build_generation_queue(build_tree(hierarchical_spec))

    assert [item.name for item in queue] == [
        "Dashboard", "Forms", "Empty",
        "StatsCard", "ProductList", "ProductForm", "Card",
        "Header", "Notes",
    ]
    levels = [item.level for item in queue]
    assert levels == sorted(levels)


@pytest.mark.unit
def test_queue_items_carry_group_and_parents(hierarchical_spec):
    queue = {item.name: item for item in build_generation_queue(build_tree(hierarchical_spec))}

    assert queue["Dashboard"].group == "Dashboard"
    assert queue["Dashboard"].parents == ("App",)
    assert queue["Header"].group == "Forms"
    assert queue["Header"].parents == ("App", "Forms", "Card")


@pytest.mark.unit
def test_queue_annotates_nodes(hierarchical_spec):
    root = build_tree(hierarchical_spec)
    build_generation_queue(root)

    form = root.children["Forms"].children["ProductForm"]
    assert [a.name for a in form.derived_actions][:1] == ["createProduct"]
    assert any(r.path == "/product/new" for r in form.derived_routes)


@pytest.mark.unit
def test_queue_self_documentation(hierarchical_spec):
    queue = {item.name: item for item in build_generation_queue(build_tree(hierarchical_spec))}
    doc = queue["ProductForm"].self_documentation

    assert doc.startswith("/**")
    assert doc.endswith(" */")
    assert " * Component: ProductForm" in doc
    assert " * Level: 2 (Sub-feature Component)" in doc
    assert "handleCreateProduct" in doc
    assert "Users expect clear validation messages" in doc


@pytest.mark.unit
def test_queue_by_level(hierarchical_spec):
    batches = queue_by_level(build_generation_queue(build_tree(hierarchical_spec)))

    assert [level for level, _ in batches] == [1, 2, 3]
    assert [len(items) for _, items in batches] == [3, 4, 2]


@pytest.mark.unit
def test_queue_context_is_plain_data(hierarchical_spec):
    item = build_generation_queue(build_tree(hierarchical_spec))[0]
    context = item.context()

    assert context["level"] == 1
    assert context["group"] == "Dashboard"
    assert isinstance(context["routes"], list)


@pytest.mark.unit
def test_queue_for_root_only_is_empty():
    assert build_generation_queue(ComponentNode(name="App")) == []


names = st.text(alphabet="abcdefghij", min_size=1, max_size=4)
trees = st.recursive(
    st.just({}),
    lambda inner: st.dictionaries(names, inner, min_size=1, max_size=3),
    max_leaves=20,
)


def _to_spec(children: dict) -> dict:
    return {"children": {name: _to_spec(sub) for name, sub in children.items()}}


@pytest.mark.unit
@given(trees)
@hypothesis_settings(max_examples=50, deadline=None)
def test_queue_covers_every_non_root_node_once(children):
    root = build_tree({"Root": _to_spec(children)})
    queue = build_generation_queue(root)

    non_root = [id(node) for node in root.iter_nodes() if node is not root]
    queued = [id(item.component) for item in queue]
    assert sorted(queued) == sorted(non_root)
    assert len(set(queued)) == len(queued)
    assert [item.level for item in queue] == sorted(item.level for item in queue)


# ============================================================================
# Classifier
# ============================================================================

@pytest.mark.unit
def test_entity_name_strips_suffix():
    assert entity_name("ProductForm") == "Product"
    assert entity_name("user-list") == "User"
    assert entity_name("Form") == "Form"


@pytest.mark.unit
def test_form_derives_crud_actions_and_routes():
    result = classify(_node("ProductForm", "Edit product details", "form"))

    assert [a.name for a in result.server_actions] == [
        "createProduct", "getProduct", "updateProduct", "deleteProduct",
    ]
    assert [r.path for r in result.routes] == ["/product/new", "/product/[id]/edit"]
    assert result.routes[1].kind == "dynamic"
    assert [c.name for c in result.client_actions][0] == "handleCreateProduct"
    assert result.client_actions[1].parameters == ("id",)


@pytest.mark.unit
def test_login_derives_auth_actions_without_crud():
    result = classify(_node("LoginForm", "Sign in with email and password", "form"))
    names = [a.name for a in result.server_actions]

    assert names[:3] == ["signIn", "signOut", "getSession"]
    assert "resetPassword" in names
    assert not any(n.startswith("create") for n in names)
    assert not any(r.path.endswith("/new") for r in result.routes)


@pytest.mark.unit
def test_signup_action():
    result = classify(_node("RegisterPanel", "Sign up for an account"))
    assert "signUp" in [a.name for a in result.server_actions]


@pytest.mark.unit
def test_data_list_and_search():
    result = classify(_node("UserList", "Searchable user table", "data", tags=["search"]))
    names = [a.name for a in result.server_actions]

    assert "getUsers" in names
    assert "searchUsers" in names


@pytest.mark.unit
def test_page_suffix_route():
    result = classify(_node("SettingsPage", "Account settings"))
    assert [r.path for r in result.routes] == ["/settings"]


@pytest.mark.unit
def test_detail_route_is_dynamic():
    result = classify(_node("OrderDetail", "Single order"))
    route = result.routes[-1]
    assert route.path == "/order/[id]"
    assert route.kind == "dynamic"


@pytest.mark.unit
def test_top_level_layout_gets_route():
    result = classify(_node("Dashboard", "Main dashboard", "layout", level=1))
    assert [r.path for r in result.routes] == ["/dashboard"]

    nested = classify(_node("Dashboard", "Main dashboard", "layout", level=2))
    assert nested.routes == ()


@pytest.mark.unit
def test_plain_component_has_nothing_derived():
    result = classify(_node("Avatar", "Round user picture", "media"))
    assert result.server_actions == ()
    assert result.routes == ()
    assert result.client_actions == ()


@pytest.mark.unit
def test_classify_is_deterministic():
    node = _node("ProductForm", "Create a product", "form")
    assert classify(node) == classify(node)


@pytest.mark.unit
@pytest.mark.parametrize(
    "action,method",
    [
        ("createProduct", "POST"),
        ("signIn", "POST"),
        ("resetPassword", "POST"),
        ("updateProduct", "PUT"),
        ("deleteProduct", "DELETE"),
        ("getProducts", "GET"),
    ],
)
def test_endpoint_methods(action, method):
    path, found = endpoint_for(ServerAction(name=action, description=""), "ProductForm")
    assert path == "/api/product-form"
    assert found == method


# ============================================================================
# Architecture plan
# ============================================================================

@pytest.mark.unit
def test_architecture_plan_totals(hierarchical_spec):
    plan = build_architecture_plan(build_tree(hierarchical_spec), {"name": "Shop"})

    assert plan["project"]["name"] == "Shop"
    assert plan["project"]["description"] == "Storefront"
    assert "/dashboard" in plan["routes"]
    assert "/product/new" in plan["routes"]
    assert plan["api"]["/api/product-form"]["methods"] == ["POST", "GET", "PUT", "DELETE"]
    assert "ProductFormActions" in plan["server_actions"]
    assert plan["metadata"]["total_components"] == 9
    assert plan["metadata"]["total_routes"] == len(plan["routes"])
