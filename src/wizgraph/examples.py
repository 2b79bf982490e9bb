"""
Example wizard builders used by the tests and the demo script.

    build_contact_form_wizard: a linear form with validators on every field
    build_plan_wizard: a radio branch, a checkbox, a hidden field and a file upload
"""
from wizgraph.config import WizardOptions
from wizgraph.model import FromType
from wizgraph.wizard import Wizard


def build_contact_form_wizard(options: WizardOptions = None) -> Wizard:
    wizard = Wizard(options=options)

    wizard.add_node({
        "id": "name",
        "type": "text",
        "content": "What is your name?",
        "attributes": {
            "name": "full_name",
            "data-xtz-validate": "true",
            "data-fv-not-empty": "true",
            "data-fv-string-length": "true",
            "data-fv-string-length___min": 2,
            "data-fv-string-length___max": 40,
        },
    })
    wizard.add_node({
        "id": "email",
        "type": "email",
        "content": "Where can we reach you?",
        "attributes": {
            "name": "email",
            "data-xtz-validate": "true",
            "data-fv-not-empty": "true",
            "data-fv-email-address": "true",
            "data-fv-email-address___message": "That does not look like an email address",
        },
    })
    wizard.add_node({
        "id": "age",
        "type": "number",
        "content": "How old are you?",
        "attributes": {
            "name": "age",
            "data-xtz-validate": "true",
            "data-fv-numeric": "true",
            "data-fv-numeric___min": 18,
            "data-fv-numeric___max": 120,
        },
    })
    wizard.add_node({
        "id": "message",
        "type": "textarea",
        "content": "Your message",
        "attributes": {"name": "message"},
    })

    for source, target in [("start", "name"), ("name", "email"), ("email", "age"), ("age", "message")]:
        wizard.add_connection({"from": source, "to": target})

    return wizard


def build_plan_wizard(options: WizardOptions = None) -> Wizard:
    """
    start -> plan (radio)
        option 0 "basic" -> extras (checkbox) -> confirmation
        option 1 "pro"   -> company (text) -> referrer (hidden) -> logo (file) -> confirmation
    """
    wizard = Wizard(options=options)

    wizard.add_node({
        "id": "plan",
        "type": "radio",
        "content": "Which plan do you want?",
        "attributes": {
            "name": "plan",
            "data-xtz-validate": "true",
            "data-fv-not-empty": "true",
        },
        "options": [
            {"value": "basic", "description": "Basic plan"},
            {"value": "pro", "description": "Pro plan"},
        ],
    })
    wizard.add_node({
        "id": "extras",
        "type": "checkbox",
        "content": "Pick your extras",
        "attributes": {"name": "extras"},
        "options": [
            {"value": "support", "description": "Priority support"},
            {"value": "backup", "description": "Daily backup", "checked": True},
            {"value": "domain", "description": "Custom domain"},
        ],
    })
    wizard.add_node({
        "id": "company",
        "type": "text",
        "content": "Company name",
        "attributes": {
            "name": "company",
            "data-xtz-validate": "true",
            "data-fv-not-empty": "true",
        },
    })
    wizard.add_node({
        "id": "referrer",
        "type": "hidden",
        "content": "pro-landing",
        "attributes": {"name": "referrer"},
    })
    wizard.add_node({
        "id": "logo",
        "type": "file",
        "content": "Upload your logo",
        "attributes": {
            "name": "logo",
            "data-xtz-validate": "true",
            "data-fv-file": "true",
            "data-fv-file___type": "image/png,image/jpeg",
        },
    })

    wizard.add_connection({"from": "start", "to": "plan"})
    wizard.add_connection({"from": "plan", "to": "extras", "fromType": FromType.OPTION.value, "optionIndex": 0})
    wizard.add_connection({"from": "plan", "to": "company", "fromType": FromType.OPTION.value, "optionIndex": 1})
    wizard.add_connection({"from": "company", "to": "referrer"})
    wizard.add_connection({"from": "referrer", "to": "logo"})

    return wizard
