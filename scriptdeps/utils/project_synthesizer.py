import os
import re
from typing import Iterable, Mapping, Sequence, Tuple
from xml.sax.saxutils import quoteattr, escape

from ..cli_logger import logger

PACKAGE_MANAGEMENT_TARGET = "FSI-PackageManagement"
DIRECTIVE_FILE_EXTENSION = ".fsx"
PROJECT_FILE_NAME = "Project.fsproj"
LIBRARY_FILE_NAME = "Library.fs"
FLOATING_VERSION = "*"

_ATTRIBUTE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.-]*$")
# Compared lowercased; MSBuild attribute and metadata names ignore case.
_RESERVED_ATTRIBUTES = {
    "include", "version", "generatepathproperty",
    "condition", "exclude", "remove", "update", "label",
    "keepmetadata", "removemetadata", "keepduplicates", "matchonmetadata",
}
# Characters MSBuild treats as syntax inside item specs and metadata.
_MSBUILD_SPECIAL_CHARS = "%$@;'?*"

LIBRARY_SOURCE = """// Generated placeholder library
namespace lib"""

PROJECT_TEMPLATE = """
<Project Sdk='Microsoft.NET.Sdk'>
  <PropertyGroup>
    <TargetFramework>$(TARGETFRAMEWORK)</TargetFramework>
    <IsPackable>false</IsPackable>
  </PropertyGroup>
  <ItemGroup>
    <Compile Include='Library.fs' />
  </ItemGroup>
$(PACKAGEREFERENCES)

  <Target Name='CollectFSharpDesignTimeTools' BeforeTargets='BeforeCompile' DependsOnTargets='_GetFrameworkAssemblyReferences'>
    <ItemGroup>
      <PropertyNames Include = "Pkg$([System.String]::Copy('%(PackageReference.FileName)').Replace('.','_'))" Condition = " '%(PackageReference.IsFSharpDesignTimeProvider)' == 'true' and '%(PackageReference.Extension)' == '' "/>
      <PropertyNames Include = "Pkg$([System.String]::Copy('%(PackageReference.FileName)%(PackageReference.Extension)').Replace('.','_'))" Condition = " '%(PackageReference.IsFSharpDesignTimeProvider)' == 'true' and '%(PackageReference.Extension)' != '' "/>
      <FscCompilerTools Include = "$(%(PropertyNames.Identity))" />
    </ItemGroup>
  </Target>

  <Target Name="PackageFSharpDesignTimeTools" DependsOnTargets="_GetFrameworkAssemblyReferences">
    <PropertyGroup>
      <FSharpDesignTimeProtocol Condition = " '$(FSharpDesignTimeProtocol)' == '' ">fsharp41</FSharpDesignTimeProtocol>
      <FSharpToolsDirectory Condition = " '$(FSharpToolsDirectory)' == '' ">tools</FSharpToolsDirectory>
    </PropertyGroup>

    <Error Text="'$(FSharpToolsDirectory)' is an invalid value for 'FSharpToolsDirectory' valid values are 'typeproviders' and 'tools'." Condition="'$(FSharpToolsDirectory)' != 'typeproviders' and '$(FSharpToolsDirectory)' != 'tools'" />
    <Error Text="The 'FSharpDesignTimeProtocol' property can be only 'fsharp41'" Condition="'$(FSharpDesignTimeProtocol)' != 'fsharp41'" />

    <ItemGroup>
      <_ResolvedOutputFiles
          Include="%(_ResolvedProjectReferencePaths.RootDir)%(_ResolvedProjectReferencePaths.Directory)/**/*"
          Exclude="%(_ResolvedProjectReferencePaths.RootDir)%(_ResolvedProjectReferencePaths.Directory)/**/FSharp.Core.dll;%(_ResolvedProjectReferencePaths.RootDir)%(_ResolvedProjectReferencePaths.Directory)/**/System.ValueTuple.dll"
          Condition="'%(_ResolvedProjectReferencePaths.IsFSharpDesignTimeProvider)' == 'true'">
        <NearestTargetFramework>%(_ResolvedProjectReferencePaths.NearestTargetFramework)</NearestTargetFramework>
      </_ResolvedOutputFiles>

      <_ResolvedOutputFiles
          Include="@(BuiltProjectOutputGroupKeyOutput)"
          Condition="'$(IsFSharpDesignTimeProvider)' == 'true' and '%(BuiltProjectOutputGroupKeyOutput->Filename)%(BuiltProjectOutputGroupKeyOutput->Extension)' != 'FSharp.Core.dll' and '%(BuiltProjectOutputGroupKeyOutput->Filename)%(BuiltProjectOutputGroupKeyOutput->Extension)' != 'System.ValueTuple.dll'">
        <NearestTargetFramework>$(TargetFramework)</NearestTargetFramework>
      </_ResolvedOutputFiles>

      <TfmSpecificPackageFile Include="@(_ResolvedOutputFiles)">
         <PackagePath>$(FSharpToolsDirectory)/$(FSharpDesignTimeProtocol)/%(_ResolvedOutputFiles.NearestTargetFramework)/%(_ResolvedOutputFiles.FileName)%(_ResolvedOutputFiles.Extension)</PackagePath>
      </TfmSpecificPackageFile>
    </ItemGroup>
  </Target>

  <Target Name='ComputePackageRoots'
          BeforeTargets='CoreCompile;FSI-PackageManagement'
          DependsOnTargets='CollectPackageReferences'>
      <ItemGroup>
        <FsxResolvedFile Include='@(ResolvedCompileFileDefinitions)'>
           <PackageRootProperty>Pkg$([System.String]::Copy('%(ResolvedCompileFileDefinitions.NugetPackageId)').Replace('.','_'))</PackageRootProperty>
           <PackageRoot>$(%(FsxResolvedFile.PackageRootProperty))</PackageRoot>
           <InitializeSourcePath>$(%(FsxResolvedFile.PackageRootProperty))/content/%(ResolvedCompileFileDefinitions.FileName)%(ResolvedCompileFileDefinitions.Extension).fsx</InitializeSourcePath>
        </FsxResolvedFile>
      </ItemGroup>
  </Target>

  <Target Name='FSI-PackageManagement' DependsOnTargets='ResolvePackageAssets'>
    <ItemGroup>
      <ReferenceLines Remove='@(ReferenceLines)' />
      <ReferenceLines Include='// Generated from #r "nuget:Package References"' />
      <ReferenceLines Include='// ============================================' />
      <ReferenceLines Include='//' />
      <ReferenceLines Include='// DOTNET_HOST_PATH:($(DOTNET_HOST_PATH))' />
      <ReferenceLines Include='// MSBuildSDKsPath:($(MSBuildSDKsPath))' />
      <ReferenceLines Include='// MSBuildExtensionsPath:($(MSBuildExtensionsPath))' />
      <ReferenceLines Include='//' />
      <ReferenceLines Include='#r @"%(FsxResolvedFile.HintPath)"'                 Condition = "%(FsxResolvedFile.NugetPackageId) != 'Microsoft.NETCore.App' and %(FsxResolvedFile.NugetPackageId) != 'FSharp.Core' and %(FsxResolvedFile.NugetPackageId) != 'System.ValueTuple' and Exists('%(FsxResolvedFile.HintPath)')" />
      <ReferenceLines Include='//' />
      <ReferenceLines Include='#load @"%(FsxResolvedFile.InitializeSourcePath)"'  Condition = "%(FsxResolvedFile.NugetPackageId) != 'Microsoft.NETCore.App' and %(FsxResolvedFile.NugetPackageId) != 'FSharp.Core' and %(FsxResolvedFile.NugetPackageId) != 'System.ValueTuple' and Exists('%(FsxResolvedFile.InitializeSourcePath)')" />
    </ItemGroup>

    <WriteLinesToFile Lines='@(ReferenceLines)' File='$(MSBuildProjectFullPath).fsx' Overwrite='True' WriteOnlyWhenDifferent='True' />
    <ItemGroup>
      <FileWrites Include='$(MSBuildProjectFullPath).fsx' />
    </ItemGroup>
  </Target>

</Project>"""


def substitute(template: str, values: Mapping[str, str]) -> str:
    """Replace each ``$(NAME)`` slot named in ``values``; leave every other
    ``$(...)`` alone since MSBuild evaluates those itself."""
    result = template
    for name, value in values.items():
        result = result.replace(f"$({name})", value)
    return result


def msbuild_escape(text: str) -> str:
    """Escape MSBuild syntax characters as ``%XX`` so ``text`` stays a literal."""
    return "".join(f"%{ord(char):02X}" if char in _MSBUILD_SPECIAL_CHARS else char for char in text)


def _attribute(name, value) -> str:
    return f"{name}={quoteattr(msbuild_escape(value))}"


def _package_reference_line(declaration) -> str:
    version = msbuild_escape(declaration.version) if declaration.version else FLOATING_VERSION
    attributes = [
        _attribute("Include", declaration.include),
        f"Version={quoteattr(version)}",
        "GeneratePathProperty='true'",
    ]
    for name, value in declaration.metadata.items():
        if not _ATTRIBUTE_NAME.match(name):
            logger.warning(f"Skipping metadata '{name}' on package '{declaration.include}': not a valid attribute name.")
            continue
        if name.lower() in _RESERVED_ATTRIBUTES:
            logger.warning(f"Skipping metadata '{name}' on package '{declaration.include}': reserved by MSBuild or set by scriptdeps.")
            continue
        attributes.append(_attribute(name, value))
    return f"    <PackageReference {' '.join(attributes)} />"


def render_package_references(declarations: Iterable, restore_sources: Sequence[str] = ()) -> str:
    lines = ["  <ItemGroup>"]
    lines.extend(_package_reference_line(d) for d in declarations)
    lines.append("  </ItemGroup>")
    if restore_sources:
        sources = escape(";".join(msbuild_escape(source) for source in restore_sources))
        lines.append("  <PropertyGroup>")
        lines.append(f"    <RestoreAdditionalProjectSources>{sources}</RestoreAdditionalProjectSources>")
        lines.append("  </PropertyGroup>")
    return "\n".join(lines)


def render(target_framework: str, declarations: Iterable, restore_sources: Sequence[str] = ()) -> Tuple[str, str]:
    """Return ``(project_text, library_source)`` for the given packages."""
    description = substitute(PROJECT_TEMPLATE, {
        "TARGETFRAMEWORK": escape(msbuild_escape(target_framework)),
        "PACKAGEREFERENCES": render_package_references(declarations, restore_sources),
    })
    return description, LIBRARY_SOURCE


def write_if_different(path, content) -> bool:
    """Write ``content`` to ``path`` unless it already holds exactly that.

    Returns True when the file was written.
    """
    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                if f.read() == content:
                    return False
        except (IOError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read existing file {path}, rewriting it: {e}")

    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    return True


def write_project(project_path, target_framework, declarations, restore_sources=()):
    """Render and write the project plus its placeholder source.

    Returns the list of files that were actually (re)written.
    """
    description, library_source = render(target_framework, declarations, restore_sources)
    project_dir = os.path.dirname(os.path.abspath(project_path))
    os.makedirs(project_dir, exist_ok=True)

    written = []
    library_path = os.path.join(project_dir, LIBRARY_FILE_NAME)
    for path, content in ((project_path, description), (library_path, library_source)):
        if write_if_different(path, content):
            logger.debug(f"Wrote {path}")
            written.append(path)
        else:
            logger.debug(f"{path} is up to date")
    return written


def directive_file_path(project_path) -> str:
    return project_path + DIRECTIVE_FILE_EXTENSION
