"""Page-side scripts used by the snapshot builder."""

ANNOTATION_CONTAINER_ID = "__electron_mcp_annotations__"

# Walks document.body and returns a list of raw nodes. Every emitted node
# element is kept in window.__electronMcpNodes so refs can be stamped later.
_SNAPSHOT_JS = """
() => {
  const registry = [];
  window.__electronMcpNodes = registry;

  const ROLE_BY_TAG = {
    a: "link", button: "button", select: "combobox", textarea: "textbox",
    img: "img", h1: "heading", h2: "heading", h3: "heading", h4: "heading",
    h5: "heading", h6: "heading", nav: "navigation", main: "main",
    header: "banner", footer: "contentinfo", aside: "complementary",
    section: "region", article: "article", form: "form", table: "table",
    ul: "list", ol: "list", li: "listitem", dialog: "dialog", menu: "menu",
    menuitem: "menuitem",
  };
  const ROLE_BY_INPUT_TYPE = {
    button: "button", submit: "button", reset: "button", checkbox: "checkbox",
    radio: "radio", range: "slider", search: "searchbox", text: "textbox",
    email: "textbox", password: "textbox", tel: "textbox", url: "textbox",
    number: "spinbutton",
  };
  const INTERACTIVE_TAGS = new Set(["a", "button", "input", "select", "textarea"]);
  const INTERACTIVE_ROLES = new Set([
    "button", "link", "checkbox", "radio", "menuitem", "menuitemcheckbox",
    "menuitemradio", "option", "tab", "switch", "slider", "spinbutton",
    "textbox", "searchbox", "combobox", "listbox", "tree", "treegrid",
    "grid", "row", "cell", "gridcell", "scrollbar",
  ]);

  const text = (el) => (el && el.textContent ? el.textContent.trim() : "");

  const isHidden = (el) => {
    const style = window.getComputedStyle(el);
    if (style.display === "none" || style.visibility === "hidden") return true;
    return el.getAttribute("aria-hidden") === "true";
  };

  const roleOf = (el) => {
    const explicit = el.getAttribute("role");
    if (explicit) return explicit;
    const tag = el.tagName.toLowerCase();
    if (tag === "input") return ROLE_BY_INPUT_TYPE[el.type] || "textbox";
    return ROLE_BY_TAG[tag] || "";
  };

  const nameOf = (el) => {
    const ariaLabel = el.getAttribute("aria-label");
    if (ariaLabel) return ariaLabel;
    const labelledBy = el.getAttribute("aria-labelledby");
    if (labelledBy) {
      const labelEl = document.getElementById(labelledBy);
      if (labelEl) return text(labelEl);
    }
    const isField = el instanceof HTMLInputElement || el instanceof HTMLSelectElement
      || el instanceof HTMLTextAreaElement;
    if (isField && el.id) {
      const label = document.querySelector(`label[for="${CSS.escape(el.id)}"]`);
      if (label) return text(label);
    }
    const title = el.getAttribute("title");
    if (title) return title;
    if (el instanceof HTMLImageElement) return el.alt || "";
    if (el instanceof HTMLButtonElement || el instanceof HTMLAnchorElement) return text(el);
    if (roleOf(el) === "heading") return text(el);
    if (el instanceof HTMLInputElement && (el.type === "submit" || el.type === "button")) {
      return el.value || "";
    }
    return "";
  };

  const levelOf = (el) => {
    const match = el.tagName.toLowerCase().match(/^h([1-6])$/);
    if (match) return parseInt(match[1], 10);
    const ariaLevel = el.getAttribute("aria-level");
    if (ariaLevel) {
      const parsed = parseInt(ariaLevel, 10);
      if (!Number.isNaN(parsed)) return parsed;
    }
    return null;
  };

  const isInteractive = (el) => {
    if (INTERACTIVE_TAGS.has(el.tagName.toLowerCase())) return true;
    const role = el.getAttribute("role");
    if (role && INTERACTIVE_ROLES.has(role)) return true;
    if (el.getAttribute("tabindex") !== null) return true;
    return el.getAttribute("onclick") !== null;
  };

  const boundsOf = (el) => {
    const rect = el.getBoundingClientRect();
    if (rect.width === 0 && rect.height === 0) return null;
    return {
      x: Math.round(rect.x),
      y: Math.round(rect.y),
      width: Math.round(rect.width),
      height: Math.round(rect.height),
    };
  };

  // Returns zero or more sibling nodes for one element.
  const collect = (el) => {
    if (isHidden(el)) return [];
    const children = [];
    for (const child of el.children) {
      children.push(...collect(child));
    }
    const role = roleOf(el);
    const name = nameOf(el);
    if (!role && !name) {
      if (isInteractive(el)) {
        return [{ role: "", name: "", index: null, children }];
      }
      return children;
    }
    registry.push(el);
    return [{
      role,
      name,
      index: registry.length - 1,
      level: levelOf(el),
      testId: el.getAttribute("data-testid") || null,
      bounds: boundsOf(el),
      children,
    }];
  };

  return document.body ? collect(document.body) : [];
}
"""

# Replaces the per-ref attribute on the elements captured by the last walk.
_STAMP_REFS_JS = """
({ attribute, assignments }) => {
  for (const el of document.querySelectorAll(`[${attribute}]`)) {
    el.removeAttribute(attribute);
  }
  const registry = window.__electronMcpNodes || [];
  for (const [index, ref] of assignments) {
    const el = registry[index];
    if (el) el.setAttribute(attribute, ref);
  }
  window.__electronMcpNodes = undefined;
}
"""

_ADD_ANNOTATIONS_JS = """
({ containerId, annotations }) => {
  const previous = document.getElementById(containerId);
  if (previous) previous.remove();
  const container = document.createElement("div");
  container.id = containerId;
  container.style.cssText = "position: fixed; top: 0; left: 0; width: 100%; height: 100%;"
    + " pointer-events: none; z-index: 2147483647;";
  for (const [ref, box] of annotations) {
    const highlight = document.createElement("div");
    highlight.style.cssText = `position: fixed; left: ${box.x}px; top: ${box.y}px;`
      + ` width: ${box.width}px; height: ${box.height}px;`
      + " border: 2px solid rgba(255, 107, 107, 0.8); background: rgba(255, 107, 107, 0.1);"
      + " box-sizing: border-box; pointer-events: none;";
    const label = document.createElement("div");
    label.textContent = ref;
    label.style.cssText = `position: fixed; left: ${box.x}px; top: ${Math.max(0, box.y - 18)}px;`
      + " background: rgba(255, 107, 107, 0.95); color: white; font-family: monospace;"
      + " font-size: 11px; font-weight: bold; padding: 1px 4px; border-radius: 2px;"
      + " pointer-events: none; white-space: nowrap;";
    container.appendChild(highlight);
    container.appendChild(label);
  }
  document.body.appendChild(container);
}
"""

_REMOVE_ANNOTATIONS_JS = """
(containerId) => {
  const container = document.getElementById(containerId);
  if (container) container.remove();
}
"""
