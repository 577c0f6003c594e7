"""Pattern definitions for transform script admission.

This module defines regex patterns for detecting forbidden capabilities,
policy-restricted topics, obfuscation and unbounded loops in transform
scripts, plus the instruction-injection phrases checked on inbound
requests. The tables are plain data; StaticAnalyzer receives them through
ScanRules rather than reading these globals directly.

Transform scripts are Python, but collaborators trained mostly on browser
code regularly slip into JavaScript idioms, so both spellings are covered.
"""

# Attributes that reach interpreter frames, and through them host globals
FRAME_ATTRIBUTES = frozenset(
    {
        "gi_frame",
        "gi_code",
        "cr_frame",
        "cr_code",
        "ag_frame",
        "ag_code",
        "tb_frame",
        "tb_next",
        "f_back",
        "f_globals",
        "f_builtins",
        "f_locals",
        "f_code",
        "f_trace",
    }
)

# Forbidden capabilities
# Every matching row is reported; labels are user-facing
FORBIDDEN_PATTERNS = [
    # Network
    (r"\bfetch\s*\(", "fetch() network call"),
    (r"\bXMLHttpRequest\b", "XMLHttpRequest"),
    (r"\burllib\b", "urllib network access"),
    (
        r"\b(?:requests|httpx|aiohttp)\.(?:get|post|put|patch|delete|head|request"
        r"|Client|AsyncClient|ClientSession|Session)\b",
        "HTTP client library",
    ),
    (r"\b(?:http\.client|ftplib|smtplib|telnetlib)\b", "network protocol module"),
    (r"\bsocket\b", "raw socket"),
    (r"\bWebSocket\b|\bwebsockets\.", "WebSocket"),
    (r"\bEventSource\b", "EventSource"),
    # Persistent storage
    (r"(?<![\w.])open\s*\(", "file open() access"),
    (r"\b(?:sqlite3|shelve|pickle|marshal|dbm)\b", "persistent storage module"),
    (r"\blocalStorage\b", "localStorage access"),
    (r"\bsessionStorage\b", "sessionStorage access"),
    (r"\bindexedDB\b", "indexedDB access"),
    (r"(?i)\bcookies?\b", "cookie access"),
    # Global objects
    (r"\b(?:globals|locals|vars)\s*\(", "global namespace access"),
    (r"\b__builtins__\b", "builtins access"),
    (r"\bdocument\s*\.", "document/DOM access"),
    (r"\bwindow\s*\.", "window object access"),
    # Dynamic evaluation
    (r"\beval\s*\(", "eval() call"),
    (r"(?<![\w.])exec\s*\(", "exec() call"),
    (r"(?<![\w.])compile\s*\(", "compile() call"),
    (r"\bnew\s+Function\s*\(", "Function constructor"),
    # Dynamic module loading
    (r"(?m)^\s*(?:import\s+\w|from\s+[\w.]+\s+import\b)", "import statement"),
    (r"\b__import__\b", "__import__() call"),
    (r"\bimportlib\b", "importlib access"),
    (r"\bimport\s*\(", "dynamic import"),
    (r"\brequire\s*\(", "require() call"),
    # Process and OS
    (r"\bos\.\w+", "os module access"),
    (r"\bsubprocess\b", "subprocess access"),
    (r"\bsys\.\w+", "sys module access"),
    # Timers
    (r"\btime\.sleep\s*\(", "time.sleep() timer"),
    (r"\basyncio\.sleep\s*\(", "asyncio.sleep() timer"),
    (r"\bsetTimeout\s*\(", "setTimeout"),
    (r"\bsetInterval\s*\(", "setInterval"),
    (r"\bthreading\.Timer\b", "threading.Timer"),
    # Background workers
    (r"\bthreading\b", "background thread"),
    (r"\bmultiprocessing\b", "multiprocessing worker"),
    (r"\bconcurrent\.futures\b", "executor pool"),
    (r"\bWorker\b", "Web Worker"),
    # Navigation
    (r"\bwebbrowser\b", "webbrowser navigation"),
    (r"\bnavigator\b", "navigator access"),
    (r"\blocation\.(?:href|assign|replace|reload)\b", "location access"),
    (r"\bhistory\.(?:back|forward|go|pushState|replaceState)\b", "history access"),
    # Reflection and introspection
    (r"\b(?:getattr|setattr|delattr)\s*\(", "attribute reflection"),
    (r"\b__proto__\b", "prototype pollution"),
    (r"\bprototype\s*\[", "prototype access"),
    (r"\bconstructor\s*\[", "constructor access"),
    (r"\.__[A-Za-z_]+__\b", "dunder attribute access"),
    (r"\.(?:" + "|".join(sorted(FRAME_ATTRIBUTES)) + r")\b", "frame introspection"),
]

# Restricted topics
# Lowercased substring match over name + description + transform code
RESTRICTED_TOPICS = [
    "cryptocurrency",
    "blockchain",
    "bitcoin",
    "ethereum",
    "hack",
    "crack",
    "exploit",
    "vulnerability",
    "malware",
    "virus",
    "ransomware",
    "private key",
    "password cracker",
    "credential harvest",
    "keylogger",
    "phishing",
    "bypass validation",
    "ignore rules",
    "sql injection",
    "xss attack",
    "ddos",
]

RESTRICTED_TOPIC_CONCERN = (
    "Tool contains restricted keywords related to security, cryptocurrency, "
    "or malicious activities"
)

# Obfuscation signals
OBFUSCATION_PATTERNS = [
    r"(?i)\\x[0-9a-f]{2}",
    r"(?i)\\u[0-9a-f]{4}",
    r"\bfromCharCode\b",
    r"(?<![\w.])chr\s*\(",
    r"\bbytes\.fromhex\s*\(",
    r"\bcodecs\.decode\s*\(",
]

OBFUSCATION_CONCERN = "Potential code obfuscation detected"

# Unbounded loops
UNBOUNDED_LOOP_PATTERNS = [
    r"\bwhile\s*\(?\s*(?:True|1)\s*\)?\s*:",
    r"\bwhile\s*\(\s*true\s*\)",
    r"\bfor\s*\(\s*;\s*;\s*\)",
]

UNBOUNDED_LOOP_CONCERN = "Potential infinite loop detected"

# Instruction-injection phrases checked on inbound requests
INJECTION_PATTERNS = [
    r"(?i)ignore\s+(?:previous|above|all|prior)\s+(?:instructions?|prompts?|rules?)",
    r"(?i)system\s+prompt",
    r"(?i)you\s+are\s+now",
    r"(?i)forget\s+(?:everything|all|previous)",
    r"(?i)new\s+(?:role|instructions?|persona)",
    r"(?i)\b(?:bypass|override|disable)\s+(?:validation|rules?|restrictions?)",
    r"(?i)\b(?:admin|root|sudo|superuser)\b",
    r"(?i)execute\s+code",
    r"(?i)run\s+arbitrary",
]

# Caps
MAX_TRANSFORM_CHARS = 10000
MAX_OPEN_BRACES = 20
