import json
import os
import tempfile
from unittest import TestCase
from unittest.mock import ANY, Mock, call, patch

from funcli.lib.build.app_builder import ApplicationBuilder, BuildStatus
from funcli.lib.build.builder import FunctionInstaller
from funcli.lib.build.exceptions import BuildError, FunctionNotFoundError
from funcli.local.docker.exceptions import ImageCopyError
from funcli.yamlhelper import yaml_parse


def _function(code_uri, runtime="python3"):
    return {
        "Type": "Aliyun::Serverless::Function",
        "Properties": {"Handler": "index.handler", "Runtime": runtime, "CodeUri": code_uri},
    }


class ApplicationBuilderTestBase(TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.base_dir = self.temp_dir.name
        self.root_artifacts_dir = os.path.join(self.base_dir, ".fun", "build", "artifacts")
        self.template_path = os.path.join(self.base_dir, "template.yml")
        with open(self.template_path, "w") as fp:
            fp.write("ROSTemplateFormatVersion: '2015-09-01'\n")

        self.installer = Mock()
        self.image_builder = Mock()
        self.image_builder.build_image.side_effect = lambda context_dir, dockerfile, tag: tag

    def tearDown(self):
        self.temp_dir.cleanup()

    def _write(self, relative_path, content=""):
        path = os.path.join(self.base_dir, relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as fp:
            fp.write(content)
        return path

    def _builder(self, template, **kwargs):
        return ApplicationBuilder(
            template,
            self.base_dir,
            template_path=self.template_path,
            installer=self.installer,
            image_builder=self.image_builder,
            **kwargs
        )

    def _read_built_template(self):
        with open(os.path.join(self.root_artifacts_dir, "template.yml")) as fp:
            return yaml_parse(fp.read())


class TestApplicationBuilder_build(ApplicationBuilderTestBase):
    def test_function_without_manifest_is_skipped(self):
        self._write("fn/index.py", "def handler(event, context): pass\n")
        template = {"Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("fn/")}}}

        result = self._builder(template).build()

        self.assertEqual([r.status for r in result.results], [BuildStatus.SKIPPED])
        self.assertEqual(result.skipped[0].full_name, "svc/fn")
        self.installer.build_in_process.assert_not_called()
        self.installer.build_in_container.assert_not_called()
        self.image_builder.build_image.assert_not_called()
        self.assertFalse(os.path.exists(os.path.join(self.root_artifacts_dir, "svc")))
        self.assertEqual(self._read_built_template(), template)
        self.assertEqual(result.template_dict, template)

    def test_function_with_manifest_is_built_in_process(self):
        code_dir = os.path.dirname(self._write("fn/requirements.txt", "flask\n"))
        template = {"Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("fn/")}}}

        result = self._builder(template, verbose=True).build()

        artifact_dir = os.path.join(self.root_artifacts_dir, "svc", "fn")
        self.assertEqual(result.results[0].status, BuildStatus.BUILT)
        self.assertEqual(result.results[0].artifact_dir, artifact_dir)
        self.installer.build_in_process.assert_called_once_with(
            "svc", "fn", code_dir, "python3", artifact_dir, True, ["build"]
        )
        self.assertTrue(os.path.isdir(artifact_dir))
        self.assertEqual(
            self._read_built_template()["Resources"]["svc"]["fn"]["Properties"]["CodeUri"],
            ".fun/build/artifacts/svc/fn",
        )

    def test_use_container_builds_in_container(self):
        code_dir = os.path.dirname(self._write("fn/package.json", "{}"))
        template = {
            "Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("fn", runtime="nodejs12")}}
        }

        self._builder(template, use_container=True).build()

        self.installer.build_in_container.assert_called_once_with(
            "svc",
            template["Resources"]["svc"],
            "fn",
            template["Resources"]["svc"]["fn"],
            self.base_dir,
            code_dir,
            os.path.join(self.root_artifacts_dir, "svc", "fn"),
            False,
            None,
            ["build"],
        )
        self.installer.build_in_process.assert_not_called()

    def test_use_container_without_manifest_is_skipped(self):
        self._write("fn/index.js")
        template = {
            "Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("fn", runtime="nodejs12")}}
        }

        result = self._builder(template, use_container=True).build()

        self.assertEqual(result.results[0].status, BuildStatus.SKIPPED)
        self.installer.build_in_container.assert_not_called()

    def test_code_uri_rewrite_keeps_skipped_functions(self):
        self._write("built/requirements.txt")
        self._write("skipped/index.py")
        template = {
            "Resources": {
                "svc": {
                    "Type": "Aliyun::Serverless::Service",
                    "built": _function("built/"),
                    "skipped": _function("skipped/"),
                }
            }
        }

        result = self._builder(template).build()

        resources = self._read_built_template()["Resources"]["svc"]
        self.assertEqual(resources["built"]["Properties"]["CodeUri"], ".fun/build/artifacts/svc/built")
        self.assertEqual(resources["skipped"]["Properties"]["CodeUri"], "skipped/")
        self.assertEqual([t.full_name for t in result.built], ["svc/built"])
        self.assertEqual(template["Resources"]["svc"]["built"]["Properties"]["CodeUri"], "built/")

    def test_records_metadata(self):
        manifest = self._write("fn/requirements.txt")
        template = {"Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("fn/")}}}

        self._builder(template, build_name="fn").build()

        with open(os.path.join(self.root_artifacts_dir, "meta.json")) as fp:
            metadata = json.load(fp)
        self.assertEqual(metadata["buildOps"], {"useDocker": False, "verbose": False, "buildName": "fn"})
        self.assertIn(os.path.abspath(manifest), metadata["fileMtimes"])
        self.assertIn(os.path.abspath(self.template_path), metadata["fileMtimes"])

    def test_stale_artifacts_are_removed(self):
        stale = self._write(".fun/build/artifacts/old/fn/index.py")
        template = {"Resources": {}}

        self._builder(template).build()

        self.assertFalse(os.path.exists(stale))

    def test_first_failure_stops_the_build(self):
        self._write("a/requirements.txt")
        self._write("b/requirements.txt")
        template = {
            "Resources": {
                "svc": {"Type": "Aliyun::Serverless::Service", "a": _function("a"), "b": _function("b")}
            }
        }
        self.installer.build_in_process.side_effect = BuildError("PipError", "failed to install flask")

        with self.assertRaises(BuildError) as ctx:
            self._builder(template).build()

        self.installer.build_in_process.assert_called_once()
        build_result = ctx.exception.build_result
        self.assertEqual([r.target.full_name for r in build_result.results], ["svc/a"])
        self.assertEqual(build_result.results[0].status, BuildStatus.FAILED)
        self.assertIs(build_result.results[0].error, ctx.exception)
        self.assertIsNone(build_result.template_dict)
        self.assertFalse(os.path.exists(os.path.join(self.root_artifacts_dir, "template.yml")))
        self.assertFalse(os.path.exists(os.path.join(self.root_artifacts_dir, "svc", "b")))

    def test_missing_code_uri(self):
        template = {"Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("missing")}}}

        with self.assertRaises(BuildError) as ctx:
            self._builder(template).build()

        self.assertEqual(ctx.exception.wrapped_from, "CodeUriNotFoundError")

    def test_unknown_build_name(self):
        template = {"Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function(".")}}}

        with self.assertRaises(FunctionNotFoundError):
            self._builder(template, build_name="svc/other").build()

    @patch("funcli.lib.build.app_builder.LOG")
    def test_warns_about_funfile_outside_code_uris(self, log_mock):
        self._write("Funfile", "RUNTIME python3\n")
        self._write("fn/index.py")
        template = {"Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("fn")}}}

        self._builder(template).build()

        warnings = [c[0][0] for c in log_mock.warning.call_args_list]
        self.assertTrue(any("is not included in any CodeUri" in warning for warning in warnings))

    @patch("funcli.lib.build.app_builder.LOG")
    def test_warns_about_compiled_java_archive(self, log_mock):
        self._write("target/demo.jar")
        template = {
            "Resources": {
                "svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("target/demo.jar", runtime="java8")}
            }
        }

        result = self._builder(template).build()

        self.assertEqual(result.results[0].status, BuildStatus.SKIPPED)
        warnings = [c[0][0] for c in log_mock.warning.call_args_list]
        self.assertTrue(any("DetectionWarning" in warning for warning in warnings))


class TestApplicationBuilder_funfile(ApplicationBuilderTestBase):
    def test_funfile_forces_container_build(self):
        code_dir = os.path.dirname(self._write("fn/Funfile", "RUNTIME python3\nRUN fun-install pip install flask\n"))
        template = {"Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("fn")}}}
        dockerfile_path = os.path.join(code_dir, ".Funfile.generated.dockerfile")

        def build_image(context_dir, dockerfile, tag):
            self.assertTrue(os.path.isfile(dockerfile))
            return tag

        self.image_builder.build_image.side_effect = build_image

        result = self._builder(template).build()

        artifact_dir = os.path.join(self.root_artifacts_dir, "svc", "fn")
        self.image_builder.build_image.assert_called_once_with(code_dir, dockerfile_path, ANY)
        image_tag = self.image_builder.build_image.call_args[0][2]
        self.assertTrue(image_tag.startswith("fun-cache-"))
        self.image_builder.copy_from_image.assert_called_once_with(image_tag, "/code/.", artifact_dir)
        self.installer.build_in_container.assert_called_once_with(
            "svc", ANY, "fn", ANY, self.base_dir, code_dir, artifact_dir, False, image_tag, ["build"]
        )
        self.installer.build_in_process.assert_not_called()
        self.assertEqual(result.results[0].status, BuildStatus.BUILT)
        self.assertFalse(os.path.exists(dockerfile_path))

    def test_dockerfile_removed_when_image_build_fails(self):
        code_dir = os.path.dirname(self._write("fn/Funfile", "RUNTIME python3\n"))
        template = {"Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("fn")}}}
        self.image_builder.build_image.side_effect = BuildError("DockerBuildFailed", "apt-get failed")

        with self.assertRaises(BuildError):
            self._builder(template).build()

        self.assertEqual(os.listdir(code_dir), ["Funfile"])

    def test_fun_yml_is_converted_to_funfile(self):
        code_dir = os.path.dirname(self._write("fnA/fun.yml", "runtime: python3\ntasks:\n  - apt: libzbar0\n"))
        template = {"Resources": {"svcA": {"Type": "Aliyun::Serverless::Service", "fnA": _function("fnA")}}}

        self._builder(template).build()

        with open(os.path.join(code_dir, "Funfile")) as fp:
            self.assertEqual(fp.read(), "RUNTIME python3\nRUN fun-install apt-get install libzbar0\n")
        self.image_builder.build_image.assert_called_once()
        self.installer.build_in_container.assert_called_once()
        self.assertEqual(
            self._read_built_template()["Resources"]["svcA"]["fnA"]["Properties"]["CodeUri"],
            ".fun/build/artifacts/svcA/fnA",
        )

    def test_functions_sharing_nas_continue_after_failed_mapping_copy(self):
        self._write("a/Funfile", "RUNTIME python3\n")
        self._write("b/Funfile", "RUNTIME python3\n")
        template = {
            "Resources": {
                "svc": {
                    "Type": "Aliyun::Serverless::Service",
                    "Properties": {
                        "NasConfig": {
                            "MountPoints": [
                                {"ServerAddr": "nas.example.com:/", "MountDir": "/mnt/nas"},
                                {"ServerAddr": "nas.example.com:/lib", "MountDir": "/mnt/lib"},
                            ]
                        }
                    },
                    "a": _function("a"),
                    "b": _function("b"),
                }
            }
        }

        def copy_from_image(image, src_path, dest_dir):
            if src_path == "/mnt/lib/.":
                raise ImageCopyError(f"{src_path} does not exist in image {image}")
            if src_path == "/code/.":
                nas_file = os.path.join(dest_dir, ".fun", "nas", os.path.basename(dest_dir), "data")
                os.makedirs(os.path.dirname(nas_file))
                open(nas_file, "w").close()

        self.image_builder.copy_from_image.side_effect = copy_from_image

        result = self._builder(template).build()

        self.assertEqual([r.status for r in result.results], [BuildStatus.BUILT, BuildStatus.BUILT])
        nas_dir = os.path.join(self.base_dir, ".fun", "nas")
        host_dir = os.path.join(nas_dir, "nas.example.com")
        copied = [c for c in self.image_builder.copy_from_image.call_args_list if c[0][1] != "/code/."]
        self.assertEqual(
            copied,
            [
                call(ANY, "/mnt/nas/.", host_dir),
                call(ANY, "/mnt/lib/.", os.path.join(host_dir, "lib")),
                call(ANY, "/mnt/nas/.", host_dir),
                call(ANY, "/mnt/lib/.", os.path.join(host_dir, "lib")),
            ],
        )
        self.assertTrue(os.path.isfile(os.path.join(nas_dir, "a", "data")))
        self.assertTrue(os.path.isfile(os.path.join(nas_dir, "b", "data")))
        self.assertFalse(os.path.exists(os.path.join(self.root_artifacts_dir, "svc", "a", ".fun", "nas")))


class TestApplicationBuilder_install(ApplicationBuilderTestBase):
    def test_installs_in_place(self):
        code_dir = os.path.dirname(self._write("fn/requirements.txt"))
        self._write("other/index.py")
        template = {
            "Resources": {
                "svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("fn"), "other": _function("other")}
            }
        }

        result = self._builder(template, stages=["install"]).build()

        self.assertEqual(result.root_artifacts_dir, self.base_dir)
        self.assertIsNone(result.template_dict)
        self.assertEqual([r.status for r in result.results], [BuildStatus.BUILT, BuildStatus.SKIPPED])
        self.installer.build_in_process.assert_called_once_with(
            "svc", "fn", code_dir, "python3", code_dir, False, ["install"]
        )
        self.assertFalse(os.path.exists(os.path.join(self.base_dir, ".fun")))
        self.assertEqual(os.listdir(code_dir), ["requirements.txt"])

    def test_install_with_funfile_but_no_manifest_is_skipped(self):
        self._write("fn/Funfile", "RUNTIME python3\n")
        template = {"Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": _function("fn")}}}

        result = self._builder(template, stages=["install"]).build()

        self.assertEqual(result.results[0].status, BuildStatus.SKIPPED)
        self.installer.build_in_container.assert_not_called()


class TestApplicationBuilder_with_pip(ApplicationBuilderTestBase):
    """
    Host builds going through the real aws-lambda-builders pip workflow
    """

    def setUp(self):
        super().setUp()
        self.installer = FunctionInstaller()
        self._write("requirements.txt")
        self._write("index.py", "def handler(event, context):\n    return 'hello'\n")
        self.function_res = {
            "Type": "Aliyun::Serverless::Function",
            "Properties": {"Handler": "index.handler", "Runtime": "python3"},
        }
        self.template = {"Resources": {"svc": {"Type": "Aliyun::Serverless::Service", "fn": self.function_res}}}

    def test_build_project_root_as_code_uri(self):
        self._write(os.path.join(".fun", "nas", "auto-default", "svc", "data"))

        result = self._builder(self.template).build()

        artifact_dir = os.path.join(self.root_artifacts_dir, "svc", "fn")
        self.assertEqual(result.results[0].status, BuildStatus.BUILT)
        self.assertIn("index.py", os.listdir(artifact_dir))
        self.assertNotIn(".fun", os.listdir(artifact_dir))
        built_function = self._read_built_template()["Resources"]["svc"]["fn"]
        self.assertEqual(built_function["Properties"]["CodeUri"], ".fun/build/artifacts/svc/fn")

    def test_install_keeps_function_code(self):
        result = self._builder(self.template, stages=["install"]).build()

        self.assertEqual(result.results[0].status, BuildStatus.BUILT)
        with open(os.path.join(self.base_dir, "index.py")) as fp:
            self.assertIn("def handler", fp.read())
        self.assertTrue(os.path.isfile(os.path.join(self.base_dir, "requirements.txt")))
        self.assertTrue(os.path.isfile(self.template_path))
