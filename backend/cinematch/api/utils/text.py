def safe_text(s):
    return (s or "").strip()


def strip_code_fences(s):
    """Drop a ``` fence if the model wrapped its JSON in one."""
    if not s:
        return ""
    txt = s.strip()
    if txt.startswith("```"):
        i = txt.find("\n")
        txt = (txt[i + 1:] if i != -1 else txt[3:]).strip()
    if txt.endswith("```"):
        txt = txt[:-3].strip()
    return txt


def clip(s, limit):
    s = s or ""
    return s if limit <= 0 else s[:limit]
