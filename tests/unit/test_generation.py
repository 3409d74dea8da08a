"""Tests for post-processing, output writing and the generation pipeline."""

import pytest

from core.errors import HostedGenerationError, PlanningError, RateLimited, TerminalGenerationError, UnitGenerationError
from clients.base import GeneratedContent
from generation import GenerationPipeline
from generation.invoker import RetryingInvoker, RetryPolicy
from generation.sanitize import attach_documentation, base_name, extract_code, sanitize_identifiers
from generation.writer import GroupUnit
from planner import build_generation_queue, build_tree, flatten_to_groups


# ============================================================================
# Sanitize
# ============================================================================

@pytest.mark.unit
def test_extract_code_prefers_longest_block():
    text = "```ts\nshort\n```\nand\n```tsx\nexport default function Big() {}\n```"
    assert extract_code(text) == "export default function Big() {}\n"


@pytest.mark.unit
def test_extract_code_without_fence():
    assert extract_code("  const x = 1;  ") == "const x = 1;\n"


@pytest.mark.unit
def test_sanitize_squashes_spaced_identifiers():
    code = (
        "interface Login Form Props { a: string }\n"
        "export function Login Form(props: Login FormProps) {}\n"
        "export default Login Form\n"
    )
    result = sanitize_identifiers(code, "Login Form")

    assert "interface LoginFormProps" in result
    assert "export function LoginForm(" in result
    assert "export default LoginForm" in result


@pytest.mark.unit
@pytest.mark.parametrize(
    "code,expected",
    [
        ("export default function Login Form() {}\n", "export default function LoginForm() {}\n"),
        (
            "export default class ErrorBoundary extends React.Component<Props> {}",
            "export default class ErrorBoundary extends React.Component<Props> {}",
        ),
        (
            "export default class Error Boundary extends Component implements Resettable {}",
            "export default class ErrorBoundary extends Component implements Resettable {}",
        ),
        ("export default login Meta satisfies Meta;", "export default loginMeta satisfies Meta;"),
    ],
)
def test_sanitize_keeps_declaration_keywords(code, expected):
    assert sanitize_identifiers(code, "LoginForm") == expected


@pytest.mark.unit
def test_sanitize_default_suffix():
    code = 'export { default as LoginForm Default } from "./LoginForm";'
    assert "LoginFormDefault" in sanitize_identifiers(code, "LoginForm")


@pytest.mark.unit
def test_sanitize_leaves_clean_code_alone():
    code = "interface CardProps {}\nexport default function Card() {}\n"
    assert sanitize_identifiers(code, "Card") == code


@pytest.mark.unit
def test_attach_documentation_after_directive():
    code = '"use client";\nexport default function A() {}\n'
    result = attach_documentation(code, "/** doc */")

    assert result.startswith('"use client";\n')
    assert result.index("/** doc */") < result.index("export default")


@pytest.mark.unit
def test_attach_documentation_noop_when_empty():
    assert attach_documentation("x\n", "") == "x\n"


@pytest.mark.unit
@pytest.mark.parametrize(
    "name,expected",
    [("Login Form", "LoginForm"), ("Card.Header", "CardHeader"), ("user-menu", "UserMenu"), ("3d", "Component3d")],
)
def test_base_name(name, expected):
    assert base_name(name) == expected


# ============================================================================
# Writer
# ============================================================================

@pytest.mark.unit
def test_write_unit_layout(writer, tmp_path):
    path = writer.write_unit("User Profile", "Avatar Badge", "export default 1\n")

    assert path == tmp_path / "out" / "user-profile" / "AvatarBadge.tsx"
    assert path.read_text() == "export default 1\n"
    assert not list(path.parent.glob("*.tmp"))


@pytest.mark.unit
def test_write_unit_overwrites(writer):
    writer.write_unit("Forms", "Login", "one")
    path = writer.write_unit("Forms", "Login", "two")
    assert path.read_text() == "two"


@pytest.mark.unit
def test_write_unit_rejects_reserved_name(writer):
    with pytest.raises(ValueError, match="reserved"):
        writer.write_unit("Forms", "page", "x")


@pytest.mark.unit
def test_check_targets_accepts_distinct_units(writer):
    writer.check_targets([("Auth", "Login.Header"), ("Auth", "Signup.Header"), ("Forms", "Header")])


@pytest.mark.unit
@pytest.mark.parametrize("name", ["Page", "page"])
def test_check_targets_rejects_reserved_name(writer, name):
    with pytest.raises(PlanningError, match="reserved") as exc_info:
        writer.check_targets([("Site", name)])

    assert exc_info.value.details["unit"] == name
    assert exc_info.value.details["group"] == "Site"


@pytest.mark.unit
@pytest.mark.parametrize("first,second", [("Header", "Header"), ("Login Form", "LoginForm"), ("LoginForm", "Loginform")])
def test_check_targets_rejects_shared_path(writer, first, second):
    with pytest.raises(PlanningError, match="both write") as exc_info:
        writer.check_targets([("Auth", first), ("Auth", second)])

    assert exc_info.value.details["conflicts_with"] == first


@pytest.mark.unit
def test_group_artifacts(writer):
    units = [GroupUnit("Login Form", "Sign in"), GroupUnit("Signup", "Register")]
    writer.write_group_artifacts("Forms", "Input forms", units)

    index = (writer.group_dir("Forms") / "index.ts").read_text()
    page = (writer.group_dir("Forms") / "page.tsx").read_text()

    assert 'export { LoginForm } from "./LoginForm";' in index
    assert 'export { default as SignupDefault } from "./Signup";' in index
    assert "Generated components: 2" in index
    assert "export default function FormsPreview()" in page
    assert "<LoginForm />" in page


@pytest.mark.unit
def test_group_artifacts_skipped_for_empty_group(writer):
    writer.write_group_artifacts("Empty", "nothing", [])
    assert not writer.group_dir("Empty").exists()


# ============================================================================
# Pipeline
# ============================================================================

@pytest.fixture
def pipeline_for(local_config, writer, fake_sleep):
    def make(backend, max_attempts: int = 2) -> GenerationPipeline:
        invoker = RetryingInvoker(
            local_config,
            policy=RetryPolicy(max_attempts=max_attempts, base_delay_ms=0, jitter_ms=0),
            local=backend,
            sleep=fake_sleep,
        )
        return GenerationPipeline(invoker, writer)

    return make


@pytest.mark.unit
async def test_run_groups_writes_units_and_artifacts(pipeline_for, stub_backend, fence, hierarchical_spec, writer):
    backend = stub_backend([fence("interface Stats Card Props {}\nexport default function Stats Card() {}")])
    pipeline = pipeline_for(backend)

    report = await pipeline.run_groups(flatten_to_groups(hierarchical_spec))

    assert report.count == 4
    assert report.groups == ["Dashboard", "Forms"]
    assert backend.calls == ["StatsCard", "ProductList", "ProductForm", "Card.Header"]
    assert (writer.group_dir("Forms") / "CardHeader.tsx").exists()
    assert (writer.group_dir("Dashboard") / "index.ts").exists()
    written = (writer.group_dir("Dashboard") / "StatsCard.tsx").read_text()
    assert "interface StatsCardProps" in written
    assert "```" not in written


@pytest.mark.unit
async def test_run_groups_legacy(pipeline_for, stub_backend, legacy_spec, writer):
    pipeline = pipeline_for(stub_backend(["export default function Login() {}"]))

    report = await pipeline.run_groups(flatten_to_groups(legacy_spec))

    assert [u.name for u in report.units] == ["Login"]
    assert report.units[0].group == "Forms"
    assert (writer.group_dir("Forms") / "Login.tsx").exists()


@pytest.mark.unit
async def test_run_queue_prefixes_documentation(pipeline_for, stub_backend, hierarchical_spec, writer):
    queue = build_generation_queue(build_tree(hierarchical_spec))
    pipeline = pipeline_for(stub_backend(['"use client";\nexport default function X() {}']))

    report = await pipeline.run_queue(queue)

    assert report.count == len(queue)
    assert report.groups == ["Dashboard", "Forms", "Empty"]
    header = (writer.group_dir("Forms") / "CardHeader.tsx").read_text()
    assert header.startswith('"use client";')
    assert " * Component: Header" in header


@pytest.mark.unit
async def test_pipeline_fails_hard_on_first_unit_failure(pipeline_for, stub_backend, fence, hierarchical_spec, writer):
    """The failing unit aborts the run; units already written stay."""

    class FailSecond:
        name = "stub"

        def __init__(self):
            self.calls = []

        async def generate(self, unit, context):
            self.calls.append(unit.name)
            if len(self.calls) == 2:
                raise TerminalGenerationError("invalid credentials")
            return await stub_backend([fence("export default 1")]).generate(unit, context)

    backend = FailSecond()
    pipeline = pipeline_for(backend)

    with pytest.raises(UnitGenerationError) as exc_info:
        await pipeline.run_groups(flatten_to_groups(hierarchical_spec))

    error = exc_info.value
    assert error.unit == "ProductList"
    assert error.completed == ["StatsCard"]
    assert error.details["group"] == "Dashboard"
    assert error.details["description"] == "List of products"
    assert "Dashboard/ProductList" in str(error)
    assert backend.calls == ["StatsCard", "ProductList"]
    assert (writer.group_dir("Dashboard") / "StatsCard.tsx").exists()


@pytest.mark.unit
async def test_pipeline_reports_attempts_on_exhaustion(pipeline_for, stub_backend, legacy_spec):
    pipeline = pipeline_for(stub_backend([RateLimited("429")]), max_attempts=3)

    with pytest.raises(UnitGenerationError, match=r"after 3 attempts") as exc_info:
        await pipeline.run_groups(flatten_to_groups(legacy_spec))

    assert exc_info.value.attempts == 3


@pytest.mark.unit
async def test_pipeline_surfaces_hosted_guidance(hosted_config, writer, stub_backend, legacy_spec):
    invoker = RetryingInvoker(hosted_config, hosted=stub_backend([RateLimited("429")], name="hosted"))
    pipeline = GenerationPipeline(invoker, writer)

    with pytest.raises(UnitGenerationError) as exc_info:
        await pipeline.run_groups(flatten_to_groups(legacy_spec))

    cause = exc_info.value.cause
    assert isinstance(cause, HostedGenerationError)
    assert cause.guidance


@pytest.mark.unit
async def test_run_queue_keeps_same_named_units_apart(pipeline_for, stub_backend, writer):
    """Same-named nodes under different parents of one group get distinct files."""
    tree = build_tree({
        "App": {
            "children": {
                "Auth": {
                    "children": {
                        "Login": {"kind": "form", "children": {"Header": {"kind": "layout"}}},
                        "Signup": {"kind": "form", "children": {"Header": {"kind": "layout"}}},
                    }
                }
            }
        }
    })

    async def echo(unit, context):
        return GeneratedContent(content=f"// {unit.name}\nexport default 1\n", backend="stub")

    report = await pipeline_for(stub_backend([echo])).run_queue(build_generation_queue(tree))

    paths = {u.name: u.path for u in report.units}
    assert len(set(paths.values())) == len(report.units) == 5
    assert paths["Login.Header"].endswith("auth/LoginHeader.tsx")
    assert paths["Signup.Header"].endswith("auth/SignupHeader.tsx")
    assert "// Login.Header" in (writer.group_dir("Auth") / "LoginHeader.tsx").read_text()
    assert "// Signup.Header" in (writer.group_dir("Auth") / "SignupHeader.tsx").read_text()

    index = (writer.group_dir("Auth") / "index.ts").read_text()
    assert index.count('from "./LoginHeader"') == 2
    assert index.count('from "./SignupHeader"') == 2


@pytest.mark.unit
async def test_run_groups_rejects_reserved_unit_before_invoking(pipeline_for, stub_backend, writer):
    backend = stub_backend(["export default 1"])
    site = {"children": {"Header": {"kind": "layout"}, "Page": {"kind": "layout"}}}
    groups = flatten_to_groups({"App": {"children": {"Site": site}}})

    with pytest.raises(PlanningError, match="reserved") as exc_info:
        await pipeline_for(backend).run_groups(groups)

    assert exc_info.value.details["unit"] == "Page"
    assert exc_info.value.details["group"] == "Site"
    assert backend.calls == []
    assert not writer.group_dir("Site").exists()


@pytest.mark.unit
async def test_run_groups_rejects_colliding_units_before_invoking(pipeline_for, stub_backend):
    backend = stub_backend(["export default 1"])
    groups = [{"name": "Forms", "components": [{"name": "Login Form"}, {"name": "LoginForm"}]}]

    with pytest.raises(PlanningError, match="both write"):
        await pipeline_for(backend).run_groups(groups)

    assert backend.calls == []
