import os
import shutil
import tempfile
import unittest
from unittest.mock import patch
from scriptdeps.utils.option_parser import PackageDeclaration, parse_package_request
from scriptdeps.utils.project_synthesizer import (
    LIBRARY_FILE_NAME,
    LIBRARY_SOURCE,
    PROJECT_TEMPLATE,
    directive_file_path,
    msbuild_escape,
    render,
    substitute,
    write_if_different,
    write_project,
)

class TestRender(unittest.TestCase):

    def test_substitute_only_named_slots(self):
        text = substitute("$(A) $(B) $(MSBuildProjectFullPath)", {"A": "1", "B": "2"})
        self.assertEqual(text, "1 2 $(MSBuildProjectFullPath)")

    def test_render_fills_both_slots(self):
        description, source = render("net8.0", [PackageDeclaration("Newtonsoft.Json", "13.0.3")])
        self.assertIn("<TargetFramework>net8.0</TargetFramework>", description)
        self.assertIn('<PackageReference Include="Newtonsoft.Json" Version="13.0.3" GeneratePathProperty=\'true\' />', description)
        self.assertNotIn("$(TARGETFRAMEWORK)", description)
        self.assertNotIn("$(PACKAGEREFERENCES)", description)
        self.assertEqual(source, LIBRARY_SOURCE)

    def test_template_logic_is_kept(self):
        description, _ = render("net8.0", [])
        self.assertIn("<Target Name='FSI-PackageManagement' DependsOnTargets='ResolvePackageAssets'>", description)
        self.assertIn("File='$(MSBuildProjectFullPath).fsx'", description)
        self.assertIn("WriteOnlyWhenDifferent='True'", description)
        self.assertIn("%(FsxResolvedFile.NugetPackageId) != 'FSharp.Core'", description)

    def test_missing_version_floats(self):
        description, _ = render("net8.0", [PackageDeclaration("FSharp.Data")])
        self.assertIn('Include="FSharp.Data" Version="*"', description)

    def test_one_line_per_package_in_order(self):
        description, _ = render("net8.0", [PackageDeclaration("A", "1"), PackageDeclaration("B", "2")])
        lines = [line for line in description.splitlines() if "<PackageReference " in line]
        self.assertEqual(len(lines), 2)
        self.assertIn('"A"', lines[0])
        self.assertIn('"B"', lines[1])

    def test_metadata_and_escaping(self):
        declaration = PackageDeclaration("A&B", "1.0", {"PrivateAssets": "all", "bad name": "x"})
        with patch('scriptdeps.utils.project_synthesizer.logger') as mock_logger:
            description, _ = render("net8.0", [declaration])
            mock_logger.warning.assert_called_once()
        self.assertIn('Include="A&amp;B"', description)
        self.assertIn('PrivateAssets="all"', description)
        self.assertNotIn("bad name", description)

    def test_restore_sources(self):
        description, _ = render("net8.0", [PackageDeclaration("A")], ["https://a/", "https://b/"])
        self.assertIn("<RestoreAdditionalProjectSources>https://a/;https://b/</RestoreAdditionalProjectSources>", description)

    def test_render_is_deterministic(self):
        declarations = [PackageDeclaration("A", "1", {"PrivateAssets": "all"})]
        self.assertEqual(render("net8.0", declarations), render("net8.0", declarations))

    def test_template_has_exactly_two_slots(self):
        self.assertEqual(PROJECT_TEMPLATE.count("$(TARGETFRAMEWORK)"), 1)
        self.assertEqual(PROJECT_TEMPLATE.count("$(PACKAGEREFERENCES)"), 1)


class TestMetadataSafety(unittest.TestCase):

    RESERVED = [
        "include", "version", "generatepathproperty", "condition", "exclude", "remove",
        "update", "keepmetadata", "removemetadata", "keepduplicates", "matchonmetadata", "label",
    ]

    @patch('scriptdeps.utils.project_synthesizer.logger')
    def test_reserved_attributes_are_skipped(self, mock_logger):
        for name in self.RESERVED:
            with self.subTest(name=name):
                description, _ = render("net8.0", [PackageDeclaration("A", "1.0", {name: "false"})])
                line = next(l for l in description.splitlines() if "<PackageReference " in l)
                self.assertEqual(line, '    <PackageReference Include="A" Version="1.0" GeneratePathProperty=\'true\' />')

    @patch('scriptdeps.utils.project_synthesizer.logger')
    def test_reserved_check_ignores_case(self, mock_logger):
        declaration = PackageDeclaration("A", "1.0", {"GeneratePathProperty": "false", "CONDITION": "false"})
        description, _ = render("net8.0", [declaration])
        self.assertEqual(description.lower().count("generatepathproperty"), 1)
        self.assertNotIn("CONDITION", description)
        self.assertEqual(mock_logger.warning.call_count, 2)

    def test_semicolon_does_not_split_the_item(self):
        description, _ = render("net8.0", parse_package_request("include=A;B,version=1.0").declarations)
        self.assertIn('<PackageReference Include="A%3BB" Version="1.0" GeneratePathProperty=\'true\' />', description)

    def test_msbuild_expressions_are_escaped(self):
        declaration = PackageDeclaration("$(Secret)", "@(Items)", {"PrivateAssets": "%(Meta)"})
        description, _ = render("net8.0", [declaration])
        self.assertIn('Include="%24(Secret)"', description)
        self.assertIn('Version="%40(Items)"', description)
        self.assertIn('PrivateAssets="%25(Meta)"', description)

    def test_msbuild_escape(self):
        self.assertEqual(msbuild_escape("a%b$c@d;e'f?g*h"), "a%25b%24c%40d%3Be%27f%3Fg%2Ah")
        self.assertEqual(msbuild_escape("Newtonsoft.Json"), "Newtonsoft.Json")

    def test_floating_default_and_explicit_wildcard(self):
        description, _ = render("net8.0", [PackageDeclaration("A"), PackageDeclaration("B", "1.*")])
        self.assertIn('Include="A" Version="*"', description)
        self.assertIn('Include="B" Version="1.%2A"', description)

    def test_restore_sources_are_escaped_individually(self):
        description, _ = render("net8.0", [PackageDeclaration("A")], ["https://a/?x=1", "https://b/"])
        self.assertIn("<RestoreAdditionalProjectSources>https://a/%3Fx=1;https://b/</RestoreAdditionalProjectSources>", description)


@patch('scriptdeps.utils.project_synthesizer.logger')
class TestWriteProject(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.project_path = os.path.join(self.test_dir, "req", "Project.fsproj")

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_writes_project_and_library(self, mock_logger):
        written = write_project(self.project_path, "net8.0", [PackageDeclaration("A", "1")])
        library_path = os.path.join(self.test_dir, "req", LIBRARY_FILE_NAME)
        self.assertEqual(written, [self.project_path, library_path])
        with open(library_path) as f:
            self.assertEqual(f.read(), LIBRARY_SOURCE)

    def test_second_identical_render_does_not_write(self, mock_logger):
        declarations = [PackageDeclaration("A", "1")]
        write_project(self.project_path, "net8.0", declarations)
        with open(self.project_path, "rb") as f:
            first = f.read()

        with patch('builtins.open', wraps=open) as spy:
            written = write_project(self.project_path, "net8.0", declarations)
            write_modes = [c for c in spy.call_args_list if len(c.args) > 1 and "w" in c.args[1]]

        self.assertEqual(written, [])
        self.assertEqual(write_modes, [])
        with open(self.project_path, "rb") as f:
            self.assertEqual(f.read(), first)

    def test_changed_input_rewrites_project_only(self, mock_logger):
        write_project(self.project_path, "net8.0", [PackageDeclaration("A", "1")])
        written = write_project(self.project_path, "net8.0", [PackageDeclaration("A", "2")])
        self.assertEqual(written, [self.project_path])

    def test_write_if_different(self, mock_logger):
        path = os.path.join(self.test_dir, "file.txt")
        self.assertTrue(write_if_different(path, "a"))
        self.assertFalse(write_if_different(path, "a"))
        self.assertTrue(write_if_different(path, "b"))

    def test_directive_file_path(self, mock_logger):
        self.assertEqual(directive_file_path(self.project_path), self.project_path + ".fsx")

if __name__ == '__main__':
    unittest.main()
