"""Navigation isolator injected into every preview document.

The isolator runs inside the sandboxed preview frame. It turns anchor
navigation into in-page scrolling and pins the frame to its current
address, so user scripts cannot navigate the rendering surface away.

Both scripts are static text: a composed document is a pure function of
the user's sources.
"""

ISOLATOR_VERSION = 1

# Delay before honouring a hash present in the initial URL (lets layout settle)
INITIAL_SCROLL_DELAY_MS = 100

# postMessage type used by the hash shim to notify the hosting page
HASH_MESSAGE_TYPE = "previewbox-hashchange"


def get_isolator_js() -> str:
    """Return the navigation isolator script.

    Contract, all inside one IIFE:

    - Clicks on an ``<a>`` with a non-empty hash are cancelled and the
      element with that id is smoothly scrolled into view (start aligned).
      A missing target is ignored.
    - After a successful scroll, ``location.hash`` is updated with a
      ``replaceState`` (never a push), and only when it differs.
    - A hash in the initial URL is honoured once after a short delay.
    - ``hashchange`` is cancelled and routed through the scroll routine.
    - ``history.pushState``/``replaceState`` with a ``#hash`` URL scroll and
      replace; any other URL is downgraded to a ``replaceState`` of the
      current address, so the frame never moves.

    Every handler swallows its own errors: a broken anchor must not break
    the preview.
    """
    return f"""
// previewbox navigation isolator v{ISOLATOR_VERSION}
(function() {{
  'use strict';

  var nativeReplaceState = history.replaceState.bind(history);

  function addressWithHash(hash) {{
    return location.href.split('#')[0] + hash;
  }}

  function scrollToHash(hash) {{
    try {{
      if (!hash || hash === '#') return false;
      var id = hash.charAt(0) === '#' ? hash.slice(1) : hash;
      try {{ id = decodeURIComponent(id); }} catch (e) {{}}
      var target = document.getElementById(id);
      if (!target) return false;
      target.scrollIntoView({{ behavior: 'smooth', block: 'start' }});
      return true;
    }} catch (e) {{
      return false;
    }}
  }}

  function syncHash(hash, state) {{
    if (location.hash === hash) return;
    try {{
      nativeReplaceState(state === undefined ? history.state : state, '', addressWithHash(hash));
    }} catch (e) {{}}
  }}

  function navigateToHash(hash, state) {{
    if (scrollToHash(hash)) syncHash(hash, state);
  }}

  document.addEventListener('click', function(e) {{
    try {{
      var anchor = e.target && e.target.closest ? e.target.closest('a') : null;
      if (!anchor || !anchor.hash) return;
      e.preventDefault();
      navigateToHash(anchor.hash);
    }} catch (err) {{}}
  }});

  if (location.hash) {{
    var initialHash = location.hash;
    setTimeout(function() {{ scrollToHash(initialHash); }}, {INITIAL_SCROLL_DELAY_MS});
  }}

  window.addEventListener('hashchange', function(e) {{
    try {{
      e.preventDefault();
      scrollToHash(location.hash);
    }} catch (err) {{}}
  }});

  function guardedHistory(state, title, url) {{
    try {{
      if (typeof url === 'string' && url.charAt(0) === '#') {{
        navigateToHash(url, state);
        return;
      }}
      nativeReplaceState(state, title, location.href);
    }} catch (e) {{}}
  }}

  history.pushState = function(state, title, url) {{
    guardedHistory(state, title, url);
  }};
  history.replaceState = function(state, title, url) {{
    guardedHistory(state, title, url);
  }};
}})();"""


def get_hash_shim_js() -> str:
    """Return the hash-change passthrough appended after the user's script.

    Forwards hash changes to the hosting page with ``postMessage`` so the
    host can follow the active anchor. The leading semicolon terminates a
    user script that omits its final one.
    """
    return f"""
;(function() {{
  'use strict';
  window.addEventListener('hashchange', function() {{
    try {{
      window.parent.postMessage({{ type: '{HASH_MESSAGE_TYPE}', hash: location.hash }}, '*');
    }} catch (e) {{}}
  }});
}})();"""
