# ==============================================================================
# NAMESPACES
# ==============================================================================
ISO_SCHEMATRON_NS = "http://purl.oclc.org/dsdl/schematron"
LEGACY_SCHEMATRON_NS = "http://www.ascc.net/xml/schematron"
SCHEMATRON_NAMESPACES = (ISO_SCHEMATRON_NS, LEGACY_SCHEMATRON_NS)

SVRL_NS = "http://purl.oclc.org/dsdl/svrl"
XML_NS = "http://www.w3.org/XML/1998/namespace"
XSL_NS = "http://www.w3.org/1999/XSL/Transform"

# Prefixes that are always bound, whatever the rules document declares
RESERVED_PREFIXES = {
    "xml": XML_NS,
}

# queryBinding values evaluated natively (XPath 1.0 through lxml)
SUPPORTED_QUERY_BINDINGS = {"xslt", "xslt1", "xpath", "xpath1", "exslt"}

# ==============================================================================
# FINDINGS
# ==============================================================================
SEVERITY_ERROR = "error"
SEVERITY_SUCCESS = "success"

KIND_FAILED_ASSERT = "failed-assert"
KIND_SUCCESSFUL_REPORT = "successful-report"
KIND_RULE_ERROR = "rule-error"
KIND_CHECK_ERROR = "check-error"
KIND_FATAL = "fatal"
KIND_PASSED = "passed"

SUCCESS_MESSAGE = "Document structure validation passed"

# ==============================================================================
# PHASES
# ==============================================================================
PHASE_ALL = "#ALL"
PHASE_DEFAULT = "#DEFAULT"

# ==============================================================================
# CLI / EXPORT
# ==============================================================================
OUTPUT_FORMATS = ["text", "json", "jsonl", "svrl"]
XML_FILE_PATTERN = "*.xml"
