"""Constant values for k8s."""

from typing import Final

DNS1123_LABEL_MAX_LENGTH: Final[int] = 63
"""Maximum length of a DNS-1123 label, used for label values and volume names."""

DNS1123_SUBDOMAIN_MAX_LENGTH: Final[int] = 253
"""Maximum length of a DNS-1123 subdomain, used for object names."""

GVK_CORE_GROUP: Final[str] = "core"
