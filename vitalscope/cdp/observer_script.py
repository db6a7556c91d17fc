from __future__ import annotations

import json

OBSERVER_SCRIPT_VERSION = "1"
BINDING_NAME = "__vitalscopeEmit"

# Self-contained and idempotent: evaluating it twice in one document is a no-op
# (besides re-announcing itself). Everything leaves the page as JSON strings
# through the CDP binding, one message per PerformanceObserver callback:
# - {kind:"hello"}     origin, timeOrigin, now, supportedEntryTypes
# - {kind:"entries"}   paint / resource / navigation / layout-shift entries
# - {kind:"vital"}     LCP, FCP, CLS, INP, TTFB reports
# - {kind:"boundary"}  node path + rect of the scoping element (or null)
_OBSERVER_TEMPLATE = r"""
(() => {
  const VERSION = "__VERSION__";
  const BINDING = "__BINDING__";
  const BOUNDARY_SELECTOR = __BOUNDARY__;
  const g = globalThis;

  function emit(payload) {
    try {
      const fn = g[BINDING];
      if (typeof fn !== "function") return false;
      fn(JSON.stringify(payload));
      return true;
    } catch (_e) {
      return false;
    }
  }

  function supportedTypes() {
    try {
      return Array.from((g.PerformanceObserver && PerformanceObserver.supportedEntryTypes) || []);
    } catch (_e) {
      return [];
    }
  }

  function hello() {
    return emit({
      kind: "hello",
      version: VERSION,
      origin: location.origin,
      timeOrigin: performance.timeOrigin,
      now: performance.now(),
      supportedEntryTypes: supportedTypes(),
    });
  }

  if (g.__vitalscope && g.__vitalscope.version === VERSION) {
    g.__vitalscope.hello();
    return { ok: true, already: true, version: VERSION };
  }

  // ──────────────────────────────────────────────────────────────────────
  // Node references
  // ──────────────────────────────────────────────────────────────────────

  function nodePath(node) {
    const path = [];
    let cur = node;
    while (cur && cur.parentNode) {
      const parent = cur.parentNode;
      const idx = Array.prototype.indexOf.call(parent.childNodes, cur);
      path.push(`${cur.nodeName}:${idx}`);
      cur = parent;
    }
    return path.reverse();
  }

  function nodeRef(node) {
    if (!node) return null;
    const isElement = node.nodeType === 1;
    return {
      tag: isElement ? String(node.tagName || "").toLowerCase() : null,
      id: isElement && typeof node.id === "string" ? node.id : "",
      className: isElement && typeof node.className === "string" ? node.className : "",
      path: nodePath(node),
    };
  }

  function rect(r) {
    if (!r) return null;
    return { x: r.x, y: r.y, width: r.width, height: r.height };
  }

  // ──────────────────────────────────────────────────────────────────────
  // Scoping boundary
  // ──────────────────────────────────────────────────────────────────────

  let lastBoundary = undefined;

  function reportBoundary() {
    if (!BOUNDARY_SELECTOR) return;
    let payload = { kind: "boundary", selector: BOUNDARY_SELECTOR, path: null, rect: null };
    try {
      const el = document.querySelector(BOUNDARY_SELECTOR);
      if (el) {
        payload.path = nodePath(el);
        payload.rect = rect(el.getBoundingClientRect());
      }
    } catch (_e) {
      // invalid selector: stays null
    }
    const key = JSON.stringify(payload);
    if (key === lastBoundary) return;
    lastBoundary = key;
    emit(payload);
  }

  // ──────────────────────────────────────────────────────────────────────
  // Entry serialization
  // ──────────────────────────────────────────────────────────────────────

  function serialize(e) {
    const out = { entryType: e.entryType, name: e.name || "", startTime: e.startTime, duration: e.duration || 0 };
    if (e.entryType === "resource") {
      out.initiatorType = e.initiatorType;
      out.transferSize = e.transferSize;
      out.encodedBodySize = e.encodedBodySize;
      out.domainLookupStart = e.domainLookupStart;
      out.domainLookupEnd = e.domainLookupEnd;
      out.connectStart = e.connectStart;
      out.connectEnd = e.connectEnd;
      out.requestStart = e.requestStart;
      out.responseStart = e.responseStart;
      out.responseEnd = e.responseEnd;
    } else if (e.entryType === "navigation") {
      out.type = e.type;
    } else if (e.entryType === "layout-shift") {
      out.value = e.value;
      out.hadRecentInput = !!e.hadRecentInput;
      out.sources = (e.sources || []).map((s) => ({
        node: nodeRef(s.node),
        previousRect: rect(s.previousRect),
        currentRect: rect(s.currentRect),
      }));
    }
    return out;
  }

  function observe(type, onEntries) {
    try {
      const po = new PerformanceObserver((list) => onEntries(list.getEntries()));
      po.observe({ type, buffered: true });
      return po;
    } catch (_e) {
      return null;
    }
  }

  // ──────────────────────────────────────────────────────────────────────
  // Web vitals
  // ──────────────────────────────────────────────────────────────────────

  function navigationType() {
    try {
      const nav = performance.getEntriesByType("navigation")[0];
      if (document.prerendering || (nav && nav.activationStart > 0)) return "prerender";
      if (nav && nav.type) return String(nav.type).replace(/_/g, "-");
    } catch (_e) {
      // ignore
    }
    return "navigate";
  }

  const vitals = {};

  function reportVital(name, value) {
    if (typeof value !== "number" || !isFinite(value) || value < 0) return;
    let v = vitals[name];
    if (!v) {
      v = vitals[name] = {
        id: `v1-${Date.now()}-${Math.floor(Math.random() * 8999999999999) + 1e12}`,
        value: undefined,
      };
    }
    if (v.value === value) return;
    const delta = v.value === undefined ? value : value - v.value;
    v.value = value;
    emit({ kind: "vital", name, value, delta, id: v.id, navigationType: navigationType() });
  }

  function activationStart() {
    try {
      const nav = performance.getEntriesByType("navigation")[0];
      return (nav && nav.activationStart) || 0;
    } catch (_e) {
      return 0;
    }
  }

  // CLS: largest session window (gap < 1s, window < 5s), recent-input shifts excluded.
  let clsValue = 0;
  let windowValue = 0;
  let windowFirst = null;
  let windowLast = null;

  function onShiftForCls(e) {
    if (e.hadRecentInput) return;
    if (windowFirst !== null && e.startTime - windowLast < 1000 && e.startTime - windowFirst < 5000) {
      windowValue += e.value;
    } else {
      windowValue = e.value;
      windowFirst = e.startTime;
    }
    windowLast = e.startTime;
    if (windowValue > clsValue) {
      clsValue = windowValue;
      reportVital("CLS", clsValue);
    }
  }

  // INP: worst interaction latency so far.
  let inpValue = -1;

  function onInteraction(e) {
    if (!e.interactionId) return;
    if (e.duration > inpValue) {
      inpValue = e.duration;
      reportVital("INP", inpValue);
    }
  }

  // ──────────────────────────────────────────────────────────────────────
  // Install
  // ──────────────────────────────────────────────────────────────────────

  const ENTRY_TYPES = ["paint", "resource", "navigation", "layout-shift"];
  const observers = [];

  for (const type of ENTRY_TYPES) {
    const po = observe(type, (entries) => {
      if (type === "layout-shift") reportBoundary();
      emit({ kind: "entries", now: performance.now(), entries: entries.map(serialize) });
      for (const e of entries) {
        if (type === "paint" && e.name === "first-contentful-paint") {
          reportVital("FCP", Math.max(e.startTime - activationStart(), 0));
        } else if (type === "navigation") {
          reportVital("TTFB", Math.max((e.responseStart || 0) - activationStart(), 0));
        } else if (type === "layout-shift") {
          onShiftForCls(e);
        }
      }
    });
    if (po) observers.push(po);
  }

  const lcpObserver = observe("largest-contentful-paint", (entries) => {
    const last = entries[entries.length - 1];
    if (last) reportVital("LCP", Math.max(last.startTime - activationStart(), 0));
  });
  if (lcpObserver) observers.push(lcpObserver);

  try {
    const po = new PerformanceObserver((list) => list.getEntries().forEach(onInteraction));
    po.observe({ type: "event", buffered: true, durationThreshold: 40 });
    observers.push(po);
  } catch (_e) {
    // no event timing support
  }

  if (BOUNDARY_SELECTOR) {
    try {
      g.addEventListener("resize", reportBoundary, { passive: true });
      g.addEventListener("scroll", reportBoundary, { passive: true, capture: true });
      new MutationObserver(reportBoundary).observe(document.documentElement || document, {
        childList: true,
        subtree: true,
      });
    } catch (_e) {
      // ignore
    }
  }

  g.__vitalscope = {
    version: VERSION,
    hello,
    boundary: reportBoundary,
    disconnect() {
      for (const po of observers) {
        try {
          po.disconnect();
        } catch (_e) {
          // ignore
        }
      }
    },
  };

  hello();
  reportBoundary();
  return { ok: true, already: false, version: VERSION };
})()
"""


def observer_script(boundary_selector: str | None = None, *, binding_name: str = BINDING_NAME) -> str:
    """Render the in-page observer with its binding name and optional boundary selector."""
    return (
        _OBSERVER_TEMPLATE.replace("__VERSION__", OBSERVER_SCRIPT_VERSION)
        .replace("__BINDING__", binding_name)
        .replace("__BOUNDARY__", json.dumps(boundary_selector or None))
    )


OBSERVER_SCRIPT_SOURCE = observer_script()
