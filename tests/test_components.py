import json
from unittest.mock import MagicMock

from agent_site_builder.forms.fields import FieldDescriptor, FieldKind, FieldOption
from agent_site_builder.generator.components import (
    COMPONENT_TEMPLATES,
    ComponentWriter,
    component_name,
    render_agent_form,
    select_components,
)
from agent_site_builder.generator.plan import UiPlan

FIELDS = [
    FieldDescriptor(name="topic", label="Topic", kind=FieldKind.TEXTAREA, required=True, hint="What to write about"),
    FieldDescriptor(
        name="tone",
        label="Tone",
        kind=FieldKind.DROPDOWN,
        options=(FieldOption(value="friendly", label="friendly"), FieldOption(value="formal", label="formal")),
    ),
    FieldDescriptor(name="options.timeout", label="Timeout", kind=FieldKind.NUMBER, depth=1),
]

MOCK_COMPONENT_RESPONSE = """```tsx
import React from 'react';

export default function Timeline() {
  return <ol className="space-y-2"></ol>;
}
```"""


class TestComponentName:
    def test_pascal_case(self):
        assert component_name("chat interface") == "ChatInterface"
        assert component_name("file-upload") == "FileUpload"
        assert component_name("ChatInterface") == "ChatInterface"

    def test_invalid_identifiers(self):
        assert component_name("3d viewer") == "Component3dViewer"
        assert component_name("!!!") == "Component"

    def test_reserved_names(self):
        assert component_name("App") == "AppComponent"


class TestSelectComponents:
    def test_plan_components_sanitized_and_unique(self):
        plan = UiPlan(components=["chat interface", "ChatInterface", "Dashboard"])
        assert select_components(plan) == ["ChatInterface", "Dashboard"]

    def test_form_added_when_fields_exist(self):
        plan = UiPlan(components=["Dashboard"])
        assert select_components(plan, FIELDS) == ["AgentForm", "Dashboard"]

    def test_form_not_duplicated(self):
        plan = UiPlan(components=["AgentForm"])
        assert select_components(plan, FIELDS) == ["AgentForm"]

    def test_default_when_empty(self):
        assert select_components(UiPlan()) == ["ChatInterface"]


class TestComponentWriter:
    def test_template_used(self):
        writer = ComponentWriter()
        assert writer.write("FileUpload", UiPlan()) == COMPONENT_TEMPLATES["FileUpload"]

    def test_placeholder_without_llm(self):
        code = ComponentWriter().write("Timeline", UiPlan())
        assert "export default function Timeline()" in code
        assert "placeholder" in code

    def test_llm_component(self):
        client = MagicMock()
        client.call.return_value = MOCK_COMPONENT_RESPONSE

        code = ComponentWriter(client=client).write("Timeline", UiPlan(components=["Timeline"]))

        assert code.startswith("import React")
        assert "export default function Timeline()" in code
        assert '"Timeline"' in client.call.call_args[1]["user"]

    def test_llm_without_default_export_falls_back(self):
        client = MagicMock()
        client.call.return_value = "Sorry, I can't do that."

        code = ComponentWriter(client=client).write("Timeline", UiPlan())
        assert "placeholder for the Timeline component" in code

    def test_templates_skip_llm(self):
        client = MagicMock()
        ComponentWriter(client=client).write("Dashboard", UiPlan())
        client.call.assert_not_called()


class TestRenderAgentForm:
    def test_fields_embedded_as_json(self):
        code = render_agent_form(FIELDS, agent_name="BlogCraftAI", endpoint="https://agent.example.com/maistro")
        start = code.index("const FIELDS: Field[] = ") + len("const FIELDS: Field[] = ")
        end = code.index(";\n", start)
        embedded = json.loads(code[start:end])
        assert [f["name"] for f in embedded] == ["topic", "tone", "options.timeout"]
        assert embedded[1]["options"] == [
            {"value": "friendly", "label": "friendly"},
            {"value": "formal", "label": "formal"},
        ]
        assert embedded[2]["depth"] == 1

    def test_agent_name_and_endpoint_are_string_literals(self):
        code = render_agent_form([], agent_name='Evil "Agent"', endpoint="/maistro")
        assert 'const AGENT_NAME = "Evil \\"Agent\\"";' in code
        assert '|| "/maistro";' in code

    def test_is_a_component(self):
        code = render_agent_form(FIELDS)
        assert "export default function AgentForm()" in code
        assert "split('.')" in code

    def test_json_body_by_default(self):
        code = render_agent_form(FIELDS)
        assert 'const CONTENT_TYPE: string = "application/json";' in code
        assert "body: JSON.stringify(unflatten(values))" in code

    def test_multipart_content_type(self):
        code = render_agent_form(FIELDS, content_type="multipart/form-data")
        assert 'const CONTENT_TYPE: string = "multipart/form-data";' in code
        assert "body: toFormData(values)" in code

    def test_initial_values_from_defaults(self):
        fields = [
            FieldDescriptor(name="tone", label="Tone", kind=FieldKind.TEXT, default="formal"),
            FieldDescriptor(name="options", label="Options", kind=FieldKind.TEXT, default={"timeout": 30}),
            FieldDescriptor(name="doc", label="Doc", kind=FieldKind.FILE, default="x.pdf"),
        ]
        code = render_agent_form(fields)
        start = code.index("const INITIAL_VALUES: Record<string, unknown> = ") + len(
            "const INITIAL_VALUES: Record<string, unknown> = "
        )
        end = code.index(";\n", start)
        assert json.loads(code[start:end]) == {"tone": "formal", "options.timeout": 30}
        assert "useState<Record<string, unknown>>(INITIAL_VALUES)" in code

    def test_writer_passes_plan_content_type(self):
        plan = UiPlan(components=["AgentForm"], content_type="multipart/form-data")
        code = ComponentWriter().write("AgentForm", plan, FIELDS)
        assert 'const CONTENT_TYPE: string = "multipart/form-data";' in code
