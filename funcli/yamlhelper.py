"""
Reads and writes the YAML documents fun works with, templates and fun.yml files
"""

import json
from collections import OrderedDict
from typing import Dict, cast

import yaml

YAML_STR_TAG = "tag:yaml.org,2002:str"


class FunLoader(yaml.SafeLoader):
    """
    Safe loader building every mapping as an OrderedDict. Services and functions are built in the order the
    template declares them.
    """


class FunDumper(yaml.SafeDumper):
    def ignore_aliases(self, data):
        return True


def _construct_ordered_mapping(loader, node):
    # resolves "<<" merge keys before the pairs are read
    loader.flatten_mapping(node)
    return OrderedDict(loader.construct_pairs(node))


def _represent_ordered_mapping(dumper, data):
    return dumper.represent_dict(data.items())


def _represent_str(dumper, value):
    # NAS UserId/GroupId values such as '0100' would be read back as octal numbers
    style = "'" if value.startswith("0") else None
    return dumper.represent_scalar(YAML_STR_TAG, value, style=style)


FunLoader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_ordered_mapping)
FunDumper.add_representer(OrderedDict, _represent_ordered_mapping)
FunDumper.add_representer(str, _represent_str)


def yaml_parse(yamlstr) -> Dict:
    """
    Parses a template, either YAML or JSON. JSON is tried first, YAML rejects the tab indentation JSON
    documents often use.
    """
    try:
        return cast(Dict, json.loads(yamlstr, object_pairs_hook=OrderedDict))
    except ValueError:
        return cast(Dict, yaml.load(yamlstr, Loader=FunLoader))


def parse_yaml_file(file_path) -> Dict:
    with open(file_path, "r", encoding="utf-8") as fp:
        return yaml_parse(fp.read())


def yaml_dump(dict_to_dump) -> str:
    """
    Dumps the dictionary as a block style YAML document, mappings keep their key order
    """
    return yaml.dump(dict_to_dump, Dumper=FunDumper, default_flow_style=False, sort_keys=False)
