"""Site generator: produces a Vite + React + Tailwind project for an agent."""

import html
import json
import logging
import tempfile
from pathlib import Path

from agent_site_builder.errors import CodegenError
from agent_site_builder.forms.fields import FieldDescriptor
from agent_site_builder.generator.components import ComponentWriter, select_components
from agent_site_builder.generator.plan import UiPlan
from agent_site_builder.generator.validator import validate_files
from agent_site_builder.integrations.neuralseek import AgentData

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "AI Agent Site"


class SiteGenerator:
    """Generates the files of a single-page site from a UI plan."""

    def __init__(self, writer: ComponentWriter | None = None):
        self.writer = writer or ComponentWriter()

    def generate(
        self,
        plan: UiPlan,
        agent: AgentData | None = None,
        fields: list[FieldDescriptor] | None = None,
    ) -> dict[str, str]:
        """Generate all project files.

        Returns dict of {filepath: content} with paths like 'src/App.tsx'.
        """
        agent_name = agent.name if agent else ""
        components = select_components(plan, fields)

        files: dict[str, str] = {
            "package.json": self._render_package_json(),
            "tsconfig.json": self._render_tsconfig(),
            "vite.config.ts": self._render_vite_config(),
            "tailwind.config.js": self._render_tailwind_config(),
            "postcss.config.js": self._render_postcss_config(),
            "index.html": self._render_index_html(agent_name or DEFAULT_TITLE),
            "vercel.json": self._render_vercel_config(),
            "src/main.tsx": self._render_main(),
            "src/index.css": self._render_index_css(),
            "src/vite-env.d.ts": '/// <reference types="vite/client" />\n',
            "src/App.tsx": self._render_app(components, agent),
        }

        for name in components:
            logger.debug("Rendering component %s", name)
            files[f"src/{name}.tsx"] = self.writer.write(name, plan, fields=fields, agent_name=agent_name)

        errors = validate_files(files)
        if errors:
            details = "; ".join(f"{fname}: {err}" for fname, err in errors.items())
            raise CodegenError(f"Generated files failed validation: {details}")

        return files

    # -- static scaffold ------------------------------------------------------

    def _render_package_json(self) -> str:
        return json.dumps({
            "name": "ai-agent-site",
            "version": "1.0.0",
            "private": True,
            "type": "module",
            "scripts": {
                "dev": "vite",
                "build": "vite build",
                "preview": "vite preview",
            },
            "dependencies": {
                "react": "^18.2.0",
                "react-dom": "^18.2.0",
            },
            "devDependencies": {
                "typescript": "^5.0.0",
                "vite": "^5.0.0",
                "@vitejs/plugin-react": "^4.0.0",
                "tailwindcss": "^3.3.0",
                "autoprefixer": "^10.4.0",
                "postcss": "^8.4.0",
                "@types/react": "^18.2.0",
                "@types/react-dom": "^18.2.0",
            },
        }, indent=2) + "\n"

    def _render_tsconfig(self) -> str:
        return json.dumps({
            "compilerOptions": {
                "target": "esnext",
                "lib": ["dom", "dom.iterable", "esnext"],
                "skipLibCheck": True,
                "strict": True,
                "noEmit": True,
                "esModuleInterop": True,
                "module": "esnext",
                "moduleResolution": "bundler",
                "resolveJsonModule": True,
                "isolatedModules": True,
                "jsx": "react-jsx",
            },
            "include": ["src"],
        }, indent=2) + "\n"

    def _render_vite_config(self) -> str:
        return '''import { defineConfig } from 'vite';
import react from '@vitejs/plugin-react';

export default defineConfig({
  plugins: [react()],
});
'''

    def _render_tailwind_config(self) -> str:
        return '''/** @type {import('tailwindcss').Config} */
export default {
  content: ["./index.html", "./src/**/*.{js,ts,jsx,tsx}"],
  theme: {
    extend: {},
  },
  plugins: [],
};
'''

    def _render_postcss_config(self) -> str:
        return '''export default {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
};
'''

    def _render_index_html(self, title: str) -> str:
        return f'''<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{html.escape(title)}</title>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.tsx"></script>
  </body>
</html>
'''

    def _render_vercel_config(self) -> str:
        return json.dumps({
            "buildCommand": "npm run build",
            "outputDirectory": "dist",
            "framework": "vite",
        }, indent=2) + "\n"

    def _render_main(self) -> str:
        return '''import React from 'react';
import ReactDOM from 'react-dom/client';
import App from './App';
import './index.css';

ReactDOM.createRoot(document.getElementById('root')!).render(
  <React.StrictMode>
    <App />
  </React.StrictMode>
);
'''

    def _render_index_css(self) -> str:
        return "@tailwind base;\n@tailwind components;\n@tailwind utilities;\n"

    # -- dynamic --------------------------------------------------------------

    def _render_app(self, components: list[str], agent: AgentData | None) -> str:
        title = (agent.name if agent else "") or DEFAULT_TITLE
        capabilities = ", ".join(agent.capabilities) if agent else ""
        imports = "\n".join(f"import {c} from './{c}';" for c in components)
        body = "\n        ".join(f"<{c} />" for c in components)
        return f'''import React from 'react';
{imports}

export default function App() {{
  return (
    <div className="min-h-screen bg-white text-black">
      <header className="bg-gray-50 border-b">
        <div className="max-w-7xl mx-auto px-4 py-6">
          <h1 className="text-3xl font-bold text-gray-900">{{{json.dumps(title)}}}</h1>
          <p className="text-gray-600">{{{json.dumps(capabilities)}}}</p>
        </div>
      </header>
      <main className="max-w-7xl mx-auto px-4 py-8 space-y-8">
        {body}
      </main>
    </div>
  );
}}
'''


def write_project(files: dict[str, str], root: Path) -> Path:
    """Write files into a fresh ``project-*`` directory under ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    project_dir = Path(tempfile.mkdtemp(prefix="project-", dir=root))
    for filename, content in files.items():
        file_path = project_dir / filename
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
    logger.info("Wrote %d files to %s", len(files), project_dir)
    return project_dir
