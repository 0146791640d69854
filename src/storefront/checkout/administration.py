"""Checkout step administration — commands, handler and the step loader."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.checkout.configuration import CheckoutConfiguration
from storefront.checkout.steps import default_steps
from storefront.config import load_settings
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CheckoutConfiguration")
class CreateCheckoutConfiguration:
    store_key = String(required=True, max_length=100)
    steps = Text()  # JSON: list of step documents; defaults to the built-in set


@storefront.command(part_of="CheckoutConfiguration")
class AddCheckoutStep:
    configuration_id = Identifier(required=True)
    step = Text(required=True)  # JSON: step document
    position = Integer()


@storefront.command(part_of="CheckoutConfiguration")
class UpdateCheckoutStep:
    configuration_id = Identifier(required=True)
    step = Text(required=True)  # JSON: step document


@storefront.command(part_of="CheckoutConfiguration")
class RemoveCheckoutStep:
    configuration_id = Identifier(required=True)
    step_id = String(required=True, max_length=255)


@storefront.command(part_of="CheckoutConfiguration")
class ReorderCheckoutSteps:
    configuration_id = Identifier(required=True)
    step_ids = Text(required=True)  # JSON: list of step ids in the new order


@storefront.command(part_of="CheckoutConfiguration")
class ResetCheckoutSteps:
    configuration_id = Identifier(required=True)


def find_configuration(store_key):
    """The configuration stored under ``store_key``, or None."""
    return current_domain.repository_for(CheckoutConfiguration).find_by_store_key(store_key)


def load_checkout_steps(store_key=None) -> list:
    """Steps for ``store_key`` (default from settings), or the built-in set."""
    store_key = store_key or load_settings().configuration_key
    config = find_configuration(store_key)
    if config is None:
        return default_steps()
    return config.current_steps()


@storefront.command_handler(part_of=CheckoutConfiguration)
class CheckoutConfigurationHandler:
    @handle(CreateCheckoutConfiguration)
    def create_configuration(self, command):
        if find_configuration(command.store_key) is not None:
            raise ValidationError({"store_key": [f"Configuration {command.store_key} already exists"]})

        steps = json.loads(command.steps) if command.steps else None
        config = CheckoutConfiguration.create(store_key=command.store_key, steps=steps)
        current_domain.repository_for(CheckoutConfiguration).add(config)
        logger.info("Checkout configuration created", store_key=command.store_key)
        return str(config.id)

    @handle(AddCheckoutStep)
    def add_step(self, command):
        repo = current_domain.repository_for(CheckoutConfiguration)
        config = repo.get(command.configuration_id)
        config.add_step(command.step, position=command.position)
        repo.add(config)

    @handle(UpdateCheckoutStep)
    def update_step(self, command):
        repo = current_domain.repository_for(CheckoutConfiguration)
        config = repo.get(command.configuration_id)
        config.update_step(command.step)
        repo.add(config)

    @handle(RemoveCheckoutStep)
    def remove_step(self, command):
        repo = current_domain.repository_for(CheckoutConfiguration)
        config = repo.get(command.configuration_id)
        config.remove_step(command.step_id)
        repo.add(config)

    @handle(ReorderCheckoutSteps)
    def reorder_steps(self, command):
        repo = current_domain.repository_for(CheckoutConfiguration)
        config = repo.get(command.configuration_id)
        config.reorder(json.loads(command.step_ids))
        repo.add(config)

    @handle(ResetCheckoutSteps)
    def reset_steps(self, command):
        repo = current_domain.repository_for(CheckoutConfiguration)
        config = repo.get(command.configuration_id)
        config.reset()
        repo.add(config)
