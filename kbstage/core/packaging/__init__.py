from .eol import normalize_eol
from .layout import DEFAULT_LAYOUT, StagingLayout
from .models import BuildReport, BuildStatus, Origin, Package, PackagingOutcome
from .packager import is_success, run_packager
from .pipeline import PackagePipeline, build_package
from .prefix import validate_content_prefix
from .rules_filters import RulesFilterPruner
from .staging import StagingAssembler

__all__ = [
    "BuildReport",
    "BuildStatus",
    "DEFAULT_LAYOUT",
    "Origin",
    "Package",
    "PackagePipeline",
    "PackagingOutcome",
    "RulesFilterPruner",
    "StagingAssembler",
    "StagingLayout",
    "build_package",
    "is_success",
    "normalize_eol",
    "run_packager",
    "validate_content_prefix",
]
