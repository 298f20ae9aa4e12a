"""
Loads the template fun commands work on
"""

import os
from typing import Dict

import yaml

from funcli.commands.exceptions import UserException
from funcli.yamlhelper import parse_yaml_file


class TemplateNotFoundException(UserException):
    pass


class TemplateFailedParsingException(UserException):
    pass


def get_template_data(template_file: str) -> Dict:
    """
    Returns the template at ``template_file``, a YAML or JSON document whose top level is a mapping

    Raises
    ------
    TemplateNotFoundException
        When there is no file at ``template_file``
    TemplateFailedParsingException
        When the file is neither YAML nor JSON, or does not hold a mapping
    """
    if not os.path.isfile(template_file):
        raise TemplateNotFoundException(f"Template file not found at {template_file}")

    try:
        template_data = parse_yaml_file(template_file)
    except yaml.YAMLError as ex:
        raise TemplateFailedParsingException(f"Failed to parse template: {ex}") from ex

    if not isinstance(template_data, dict):
        raise TemplateFailedParsingException(f"Failed to parse template: {template_file} is not a mapping")

    return template_data
