"""Component selection and rendering for generated sites.

Components come from three places, in order: the agent form rendered from
field descriptors, the built-in template catalog, and the LLM. A placeholder
stands in when the LLM is not configured or gives back nothing usable.
"""

import json
import logging
import re

from agent_site_builder.forms.fields import FieldDescriptor
from agent_site_builder.forms.submission import form_defaults
from agent_site_builder.generator.plan import FORM_COMPONENT, UiPlan
from agent_site_builder.llm import LlmClient
from agent_site_builder.parser.openapi import JSON_CONTENT_TYPE

logger = logging.getLogger(__name__)

DEFAULT_COMPONENT = "ChatInterface"
DEFAULT_AGENT_ENDPOINT = "/maistro"
RESERVED_NAMES = {"App", "Main", "React"}

COMPONENT_SYSTEM_PROMPT = (
    "You write React TypeScript components. "
    "Output a single ```tsx code block and nothing else."
)

COMPONENT_PROMPT = """Generate a React TypeScript component named "{name}" based on this UI plan:

{plan}

Requirements:
- Use modern React with hooks
- Include proper TypeScript types
- Use Tailwind CSS for styling
- Make it responsive and accessible
- Include proper error handling
- Add loading states where appropriate
- Export the component as the default export

Return only the component code, no explanations."""


# -- catalog ------------------------------------------------------------------

CHAT_INTERFACE = """import React, { useState } from 'react';

interface Message {
  sender: 'user' | 'agent';
  text: string;
}

const AGENT_ENDPOINT: string = import.meta.env.VITE_AGENT_ENDPOINT || '/maistro';

export default function ChatInterface() {
  const [messages, setMessages] = useState<Message[]>([]);
  const [input, setInput] = useState('');
  const [loading, setLoading] = useState(false);

  const sendMessage = async () => {
    const text = input.trim();
    if (!text) return;
    setMessages((prev) => [...prev, { sender: 'user', text }]);
    setInput('');
    setLoading(true);
    try {
      const res = await fetch(AGENT_ENDPOINT, {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify({ params: { message: text }, options: { returnVariables: true } }),
      });
      if (!res.ok) throw new Error(`Request failed: ${res.status}`);
      const data = await res.json();
      setMessages((prev) => [...prev, { sender: 'agent', text: data.answer || 'No response received' }]);
    } catch (err) {
      const message = err instanceof Error ? err.message : 'Unknown error';
      setMessages((prev) => [...prev, { sender: 'agent', text: `Error: ${message}` }]);
    } finally {
      setLoading(false);
    }
  };

  return (
    <div className="p-4 border rounded-lg flex flex-col h-96">
      <div className="flex-1 overflow-y-auto space-y-2 mb-2" aria-live="polite">
        {messages.map((m, i) => (
          <div key={i} className={m.sender === 'user' ? 'text-right' : 'text-left'}>
            <span className={`inline-block px-3 py-1 rounded ${m.sender === 'user' ? 'bg-blue-600 text-white' : 'bg-gray-100'}`}>
              {m.text}
            </span>
          </div>
        ))}
        {loading && <div className="text-gray-400 text-sm">Thinking...</div>}
      </div>
      <div className="flex gap-2">
        <input
          className="flex-1 border rounded px-2 py-1"
          value={input}
          onChange={(e) => setInput(e.target.value)}
          onKeyDown={(e) => e.key === 'Enter' && sendMessage()}
          aria-label="Message"
        />
        <button className="bg-blue-600 text-white px-3 py-1 rounded" onClick={sendMessage} disabled={loading}>
          Send
        </button>
      </div>
    </div>
  );
}
"""

FILE_UPLOAD = """import React, { useRef, useState } from 'react';

export default function FileUpload() {
  const fileInput = useRef<HTMLInputElement>(null);
  const [status, setStatus] = useState<string | null>(null);

  const handleUpload = () => {
    const file = fileInput.current?.files?.[0];
    setStatus(file ? `Selected ${file.name} (${file.size} bytes)` : 'Choose a file first');
  };

  return (
    <div className="p-4 border rounded-lg">
      <input type="file" ref={fileInput} className="mb-2 block" aria-label="Upload file" />
      <button className="bg-blue-600 text-white px-3 py-1 rounded" onClick={handleUpload}>Upload</button>
      {status && <p className="text-sm text-gray-600 mt-2">{status}</p>}
    </div>
  );
}
"""

DATA_VISUALIZATION = """import React from 'react';

interface DataPoint {
  label: string;
  value: number;
}

export default function DataVisualization({ data = [] }: { data?: DataPoint[] }) {
  const max = Math.max(1, ...data.map((d) => d.value));
  return (
    <div className="p-4 border rounded-lg">
      <h2 className="text-xl font-bold mb-2">Data Visualization</h2>
      {data.length === 0 && <p className="text-gray-600">No data yet.</p>}
      <div className="space-y-1">
        {data.map((d) => (
          <div key={d.label} className="flex items-center gap-2">
            <span className="w-24 text-sm text-gray-700">{d.label}</span>
            <div className="bg-blue-500 h-3 rounded" style={{ width: `${(d.value / max) * 100}%` }} />
          </div>
        ))}
      </div>
    </div>
  );
}
"""

FORM_BUILDER = """import React, { useState } from 'react';

interface FormEntry {
  label: string;
  value: string;
}

export default function FormBuilder() {
  const [fields, setFields] = useState<FormEntry[]>([{ label: 'Name', value: '' }]);

  const update = (index: number, value: string) =>
    setFields((prev) => prev.map((f, i) => (i === index ? { ...f, value } : f)));

  return (
    <form className="p-4 border rounded-lg space-y-2" onSubmit={(e) => e.preventDefault()}>
      {fields.map((f, i) => (
        <label key={i} className="block">
          <span className="text-gray-700">{f.label}</span>
          <input className="w-full border rounded px-2 py-1" value={f.value} onChange={(e) => update(i, e.target.value)} />
        </label>
      ))}
      <button
        type="button"
        className="text-blue-600 text-sm"
        onClick={() => setFields((prev) => [...prev, { label: `Field ${prev.length + 1}`, value: '' }])}
      >
        Add field
      </button>
    </form>
  );
}
"""

DASHBOARD = """import React from 'react';

export default function Dashboard() {
  return (
    <div className="p-4 border rounded-lg">
      <h2 className="text-xl font-bold mb-2">Dashboard</h2>
      <div className="grid grid-cols-1 sm:grid-cols-3 gap-4">
        <div className="p-3 bg-gray-50 rounded">Status: <span className="font-semibold">Online</span></div>
        <div className="p-3 bg-gray-50 rounded">Requests: <span className="font-semibold">0</span></div>
        <div className="p-3 bg-gray-50 rounded">Errors: <span className="font-semibold">0</span></div>
      </div>
    </div>
  );
}
"""

COMPONENT_TEMPLATES = {
    "ChatInterface": CHAT_INTERFACE,
    "FileUpload": FILE_UPLOAD,
    "DataVisualization": DATA_VISUALIZATION,
    "FormBuilder": FORM_BUILDER,
    "Dashboard": DASHBOARD,
}


# -- selection ----------------------------------------------------------------


def component_name(raw: str) -> str:
    """Turn a free-form component name into a PascalCase identifier."""
    words = re.findall(r"[A-Za-z0-9]+", str(raw))
    name = "".join(w[0].upper() + w[1:] for w in words)
    if not name or name[0].isdigit():
        name = f"Component{name}"
    if name in RESERVED_NAMES:
        name = f"{name}Component"
    return name


def select_components(plan: UiPlan, fields: list[FieldDescriptor] | None = None) -> list[str]:
    """Decide which components the site gets, in render order."""
    names: list[str] = []
    for raw in plan.components:
        name = component_name(raw)
        if name not in names:
            names.append(name)

    if fields and FORM_COMPONENT not in names:
        names.insert(0, FORM_COMPONENT)

    if not names:
        names.append(DEFAULT_COMPONENT)

    return names


# -- rendering ----------------------------------------------------------------


class ComponentWriter:
    """Produces the TSX source of each selected component."""

    def __init__(self, client: LlmClient | None = None, endpoint: str = DEFAULT_AGENT_ENDPOINT):
        self.client = client
        self.endpoint = endpoint

    def write(
        self,
        name: str,
        plan: UiPlan,
        fields: list[FieldDescriptor] | None = None,
        agent_name: str = "",
    ) -> str:
        if name == FORM_COMPONENT:
            return render_agent_form(
                fields or [],
                agent_name=agent_name,
                endpoint=self.endpoint,
                content_type=plan.content_type,
            )
        if name in COMPONENT_TEMPLATES:
            return COMPONENT_TEMPLATES[name]
        if self.client is None:
            return render_placeholder(name)
        return self._generate(name, plan)

    def _generate(self, name: str, plan: UiPlan) -> str:
        response = self.client.call(
            system=COMPONENT_SYSTEM_PROMPT,
            user=COMPONENT_PROMPT.format(name=name, plan=plan.model_dump_json(indent=2)),
            temperature=0.3,
        )
        code = self._extract_code(response)
        if "export default" not in code:
            logger.warning("LLM gave no usable code for %s, using placeholder", name)
            return render_placeholder(name)
        return code + "\n"

    def _extract_code(self, response: str) -> str:
        """Extract code from a markdown code block."""
        match = re.search(r"```(?:tsx|typescript|jsx|ts)?\s*\n(.*?)```", response, re.DOTALL)
        if match:
            return match.group(1).strip()
        return response.strip()


def render_placeholder(name: str) -> str:
    return f"""import React from 'react';

export default function {name}() {{
  return (
    <div className="p-4 border rounded-lg">
      <h2 className="text-xl font-bold mb-2">{name}</h2>
      <p className="text-gray-600">This is a placeholder for the {name} component.</p>
    </div>
  );
}}
"""


def render_agent_form(
    fields: list[FieldDescriptor],
    agent_name: str = "",
    endpoint: str = DEFAULT_AGENT_ENDPOINT,
    content_type: str = JSON_CONTENT_TYPE,
) -> str:
    """Render a form component with one control per field descriptor.

    Submitted values are keyed by dot path and reassembled into a nested
    body before being POSTed to the agent endpoint, as JSON or, for a
    ``multipart/form-data`` endpoint, as form data with files attached.
    The form starts out filled with the fields' schema defaults.
    """
    fields_json = json.dumps([f.model_dump(mode="json") for f in fields], indent=2)
    return AGENT_FORM_TEMPLATE.format(
        agent_name=json.dumps(agent_name),
        endpoint=json.dumps(endpoint),
        content_type=json.dumps(content_type),
        fields=fields_json,
        initial_values=json.dumps(form_defaults(fields), indent=2, default=str),
    )


AGENT_FORM_TEMPLATE = """import React, {{ useState }} from 'react';

type FieldKind = 'text' | 'textarea' | 'number' | 'checkbox' | 'file' | 'dropdown';

interface FieldOption {{
  value: unknown;
  label: string;
}}

interface Field {{
  name: string;
  label: string;
  kind: FieldKind;
  required: boolean;
  hint: string;
  options: FieldOption[] | null;
  default: unknown;
  depth: number;
}}

const AGENT_NAME = {agent_name};
const AGENT_ENDPOINT: string = import.meta.env.VITE_AGENT_ENDPOINT || {endpoint};
const CONTENT_TYPE: string = {content_type};
const MULTIPART = CONTENT_TYPE === 'multipart/form-data';

const FIELDS: Field[] = {fields};

const INITIAL_VALUES: Record<string, unknown> = {initial_values};

// 'options.timeout' -> {{ options: {{ timeout: ... }} }}
function unflatten(flat: Record<string, unknown>): Record<string, unknown> {{
  const body: Record<string, any> = {{}};
  Object.entries(flat).forEach(([key, value]) => {{
    const parts = key.split('.');
    let node = body;
    parts.slice(0, -1).forEach((part) => {{
      if (typeof node[part] !== 'object' || node[part] === null) node[part] = {{}};
      node = node[part];
    }});
    node[parts[parts.length - 1]] = value;
  }});
  return body;
}}

// files go as parts under their own dot path, everything else per top-level key
function toFormData(flat: Record<string, unknown>): FormData {{
  const form = new FormData();
  const rest: Record<string, unknown> = {{}};
  Object.entries(flat).forEach(([key, value]) => {{
    if (value instanceof Blob) form.append(key, value);
    else rest[key] = value;
  }});
  Object.entries(unflatten(rest)).forEach(([key, value]) => {{
    if (value === undefined || value === null) return;
    form.append(key, typeof value === 'object' ? JSON.stringify(value) : String(value));
  }});
  return form;
}}

function readFile(file: File): Promise<string> {{
  return new Promise((resolve, reject) => {{
    const reader = new FileReader();
    reader.onload = () => resolve(String(reader.result));
    reader.onerror = () => reject(reader.error);
    reader.readAsDataURL(file);
  }});
}}

export default function AgentForm() {{
  const [values, setValues] = useState<Record<string, unknown>>(INITIAL_VALUES);
  const [result, setResult] = useState<unknown>(null);
  const [error, setError] = useState<string | null>(null);
  const [loading, setLoading] = useState(false);

  const update = (name: string, value: unknown) => setValues((prev) => ({{ ...prev, [name]: value }}));

  const handleFile = async (name: string, file: File | undefined) => {{
    if (MULTIPART) {{
      update(name, file);
      return;
    }}
    update(name, file ? await readFile(file) : undefined);
  }};

  const handleSubmit = async (e: React.FormEvent<HTMLFormElement>) => {{
    e.preventDefault();
    setLoading(true);
    setError(null);
    try {{
      const res = await fetch(
        AGENT_ENDPOINT,
        MULTIPART
          ? {{ method: 'POST', body: toFormData(values) }}
          : {{
              method: 'POST',
              headers: {{ 'Content-Type': 'application/json' }},
              body: JSON.stringify(unflatten(values)),
            }},
      );
      if (!res.ok) throw new Error(`Request failed: ${{res.status}}`);
      setResult(await res.json());
    }} catch (err) {{
      setError(err instanceof Error ? err.message : 'Unknown error');
    }} finally {{
      setLoading(false);
    }}
  }};

  const renderInput = (field: Field) => {{
    const value = values[field.name];
    const className = 'w-full border border-gray-300 rounded-lg p-2';
    switch (field.kind) {{
      case 'file':
        return <input type="file" required={{field.required}} className="block w-full" onChange={{(e) => handleFile(field.name, e.target.files?.[0])}} />;
      case 'textarea':
        return <textarea required={{field.required}} className={{className}} placeholder={{field.hint}} value={{String(value ?? '')}} onChange={{(e) => update(field.name, e.target.value)}} />;
      case 'number':
        return <input type="number" required={{field.required}} className={{className}} placeholder={{field.hint}} value={{String(value ?? '')}} onChange={{(e) => update(field.name, e.target.value === '' ? undefined : Number(e.target.value))}} />;
      case 'checkbox':
        return <input type="checkbox" className="w-4 h-4" checked={{Boolean(value)}} onChange={{(e) => update(field.name, e.target.checked)}} />;
      case 'dropdown':
        if (field.options && field.options.length > 0) {{
          const options = field.options;
          const selected = options.findIndex((opt) => opt.value === value);
          return (
            <select required={{field.required}} className={{className}} value={{selected < 0 ? '' : String(selected)}} onChange={{(e) => update(field.name, options[Number(e.target.value)]?.value)}}>
              <option value="">Select...</option>
              {{options.map((opt, i) => (
                <option key={{i}} value={{i}}>{{opt.label}}</option>
              ))}}
            </select>
          );
        }}
        break;
    }}
    return <input type="text" required={{field.required}} className={{className}} placeholder={{field.hint}} value={{String(value ?? '')}} onChange={{(e) => update(field.name, e.target.value)}} />;
  }};

  return (
    <div className="bg-white rounded-lg shadow p-6">
      <h2 className="text-xl font-semibold mb-4">{{AGENT_NAME || 'Agent'}} input</h2>
      <form onSubmit={{handleSubmit}} className="space-y-6">
        {{FIELDS.map((field) => (
          <div key={{field.name}} className="space-y-1" style={{{{ marginLeft: field.depth * 16 }}}}>
            <label className="block font-medium text-gray-700">
              {{field.label}}
              {{field.required && <span className="text-red-500 ml-1">*</span>}}
            </label>
            {{field.hint && <div className="text-xs text-gray-500 mb-1">{{field.hint}}</div>}}
            {{renderInput(field)}}
          </div>
        ))}}
        <button type="submit" disabled={{loading}} className="w-full bg-blue-600 hover:bg-blue-700 text-white font-semibold py-3 rounded-lg">
          {{loading ? 'Running...' : 'Submit'}}
        </button>
      </form>
      {{error && <div className="mt-4 text-red-600">{{error}}</div>}}
      {{result !== null && (
        <pre className="mt-4 bg-gray-50 p-4 rounded text-sm overflow-x-auto">{{JSON.stringify(result, null, 2)}}</pre>
      )}}
    </div>
  );
}}
"""
