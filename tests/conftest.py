"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides a small Convex workspace used across the resolver tests.
"""

import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local convexnav package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of convexnav modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("convexnav"):
        del sys.modules[module_name]


CONTACTS_TS = """\
import { v } from "convex/values";
import { mutation, query, internalMutation } from "./_generated/server";

export const createContact = mutation({
  args: { name: v.string(), email: v.string() },
  handler: async (ctx, args) => {
    return await ctx.db.insert("contacts", args);
  },
});

export const listContacts = query({
  args: {},
  handler: async (ctx) => {
    return await ctx.db.query("contacts").collect();
  },
});

export const purgeContacts = internalMutation({
  args: v.object({ before: v.number() }),
  handler: async (ctx, args) => {},
});
"""

USERS_TS = """\
import { authedQuery } from "./lib/auth";

export const currentUser = authedQuery({
  args: {},
  handler: async (ctx) => ctx.user,
});
"""

GENERATED_API_TS = """\
/* eslint-disable */
export const fake = query({ args: {}, handler: async () => null });
export declare const api: any;
"""

CONTACT_FORM_TSX = """\
import { useMutation } from "convex/react";
import { api } from "../../convex/_generated/api";

export function ContactForm() {
  const createContact = useMutation(api.domains.contacts.createContact);
  return null;
}
"""

CONTACT_LIST_TSX = """\
import { useQuery } from "convex/react";
import { api } from "../../convex/_generated/api";

export function ContactList() {
  const contacts = useQuery(api.domains.contacts.listContacts);
  // api.domains.contacts.createContact is used by ContactForm
  return contacts;
}
"""

CRON_TS = """\
import { internal } from "./_generated/api";

export const nightly = internalAction({
  handler: async (ctx) => {
    await ctx.runMutation(internal.domains.contacts.purgeContacts, { before: 0 });
  },
});
"""


@pytest.fixture
def convex_workspace(tmp_path: Path) -> Path:
    """A workspace with a convex/ backend, a src/ frontend and a node_modules decoy."""
    workspace = tmp_path / "app"
    convex = workspace / "convex"
    (convex / "domains").mkdir(parents=True)
    (convex / "_generated").mkdir()
    (convex / "lib").mkdir()

    (convex / "convex.config.ts").write_text("export default defineApp();\n")
    (convex / "domains" / "contacts.ts").write_text(CONTACTS_TS)
    (convex / "users.ts").write_text(USERS_TS)
    (convex / "crons.ts").write_text(CRON_TS)
    (convex / "_generated" / "api.ts").write_text(GENERATED_API_TS)
    (convex / "lib" / "auth.ts").write_text("export const authedQuery = customQuery(query, {});\n")

    components = workspace / "src" / "components"
    components.mkdir(parents=True)
    (components / "ContactForm.tsx").write_text(CONTACT_FORM_TSX)
    (components / "ContactList.tsx").write_text(CONTACT_LIST_TSX)

    decoy = workspace / "node_modules" / "pkg"
    decoy.mkdir(parents=True)
    (decoy / "index.ts").write_text("useMutation(api.domains.contacts.createContact);\n")

    return workspace
