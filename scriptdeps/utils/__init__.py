from .option_parser import (
    ParsedOption,
    ParsedOptions,
    PackageDeclaration,
    PackageRequest,
    parse_options,
    group_options,
    parse_package_request,
)
from .toolchain_locator import (
    ToolchainEnvironment,
    FullFrameworkLocator,
    SelfContainedLocator,
    select_locator,
    locate,
)
from .project_synthesizer import render, write_project, write_if_different, directive_file_path
from .command_executor import ProcessRunner, format_command
from .build_executor import BuildOutcome, execute
