from pytest_archon import archrule


LIFECYCLE_MODULES = ("state", "entity", "model_dict")


def test_lifecycle_independence() -> None:
    """
    Entity and lifecycle modules describe in-memory state only.
    They must not reach the driver or the connection.
    """
    for module in LIFECYCLE_MODULES:
        (
            archrule(f"{module}_is_independent")
            .match(f"cqrs_ddd_active_record.{module}")
            .should_not_import("motor*")
            .should_not_import("cqrs_ddd_active_record.connection")
            .should_not_import("cqrs_ddd_active_record.gateway")
            .check("cqrs_ddd_active_record")
        )


def test_gateway_layering() -> None:
    """
    The gateway sits below the operation facades and must not import them.
    """
    (
        archrule("gateway_layering")
        .match("cqrs_ddd_active_record.gateway")
        .should_not_import("cqrs_ddd_active_record.operations")
        .should_not_import("cqrs_ddd_active_record.blocking")
        .should_not_import("cqrs_ddd_active_record.store")
        .check("cqrs_ddd_active_record")
    )


def test_async_core_has_no_blocking_dependency() -> None:
    """
    The async operations never depend on the blocking facade.
    """
    (
        archrule("async_core")
        .match("cqrs_ddd_active_record.operations")
        .should_not_import("cqrs_ddd_active_record.blocking")
        .check("cqrs_ddd_active_record")
    )
