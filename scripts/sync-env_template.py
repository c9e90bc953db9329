## Regenerate .env-template from .env, keeping keys and comments but hiding values
import sys
from pathlib import Path

from dotenv import dotenv_values

env_path = Path('.') / '.env'
template_path = Path('.') / '.env-template'

PLACEHOLDER = "<YOUR_VALUE_HERE>"

# Non-secret settings keep their value in the template
PUBLIC_PREFIXES = ("GENERATION__", "SERVER__", "APP__")


def template_value(key, value):
    if key.upper().startswith(PUBLIC_PREFIXES) and value is not None:
        return value
    return PLACEHOLDER


def sync_env_template(env_file=env_path, template_file=template_path):
    values = dotenv_values(env_file)
    lines = env_file.read_text(encoding="utf-8").splitlines()

    out = []
    for line in lines:
        stripped = line.strip()

        # Preserve comments and blank lines
        if not stripped or stripped.startswith("#"):
            out.append(line)
            continue

        prefix = ""
        if stripped.startswith("export "):
            prefix = "export "
            stripped = stripped[len("export "):]

        if "=" not in stripped:
            continue

        key = stripped.split("=", 1)[0].strip()
        out.append(f"{prefix}{key}={template_value(key, values.get(key))}")

    template_file.write_text("\n".join(out) + "\n", encoding="utf-8")
    return len(values)


if __name__ == "__main__":
    if not env_path.exists():
        print(f"No .env file at {env_path.resolve()}")
        sys.exit(1)
    count = sync_env_template()
    print(f"Wrote {count} keys to {template_path}")
