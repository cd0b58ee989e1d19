from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.exceptions import DomainError, PartialProvisioningFailure, ProvisioningFailed
from shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork
from shared.infrastructure.observability.logger import get_logger, log_context
from tenancy.domain.entities import ShopSetup
from tenancy.domain.reports import ProvisioningReport, StepResult
from tenancy.domain.value_objects import DEFAULT_SHOP_SETTINGS, AlertRules, StepStatus
from tenancy.infrastructure.tenant_store import TenantStore

logger = get_logger(__name__)


@dataclass
class _ProvisioningState:
    # source dish id (position in the onboarding menu) -> dishes.id
    dish_ids: Dict[int, int] = field(default_factory=dict)


StepFn = Callable[[TenantStore, ShopSetup, _ProvisioningState], Awaitable[int]]


@dataclass(frozen=True)
class ProvisioningStep:
    name: str
    run: StepFn
    applies: Callable[[ShopSetup], bool] = lambda setup: True


class ProvisioningOrchestrator:
    """
    Onboards a new shop through an ordered pipeline of named steps:

        create_tenant -> seed_settings -> create_dishes
            -> create_recommendations -> create_monitoring_config

    Failure of create_tenant is fatal (ProvisioningFailed). A later failure is
    a PartialProvisioningFailure: by default every step commits on its own, so
    rows written by earlier steps stay in place and the remaining steps are
    reported as skipped. With `atomic=True` the whole pipeline shares one
    transaction and is rolled back on any failure.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        alert_channels: Sequence[str] = ("dashboard", "email"),
        atomic: bool = False,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._session_factory = session_factory
        self._rules = AlertRules.with_channels(alert_channels)
        self._atomic = atomic
        self._timeout = timeout_seconds
        self.steps: List[ProvisioningStep] = [
            ProvisioningStep("create_tenant", self._create_tenant),
            ProvisioningStep("seed_settings", self._seed_settings),
            ProvisioningStep("create_dishes", self._create_dishes, lambda s: bool(s.dishes)),
            ProvisioningStep("create_recommendations", self._create_recommendations, lambda s: bool(s.recommend_dishes)),
            ProvisioningStep("create_monitoring_config", self._create_monitoring_config),
        ]

    # ---------- steps ----------

    async def _create_tenant(self, store: TenantStore, setup: ShopSetup, state: _ProvisioningState) -> int:
        await store.create_tenant(setup.tenant_fields())
        return 1

    async def _seed_settings(self, store: TenantStore, setup: ShopSetup, state: _ProvisioningState) -> int:
        rows = await store.seed_settings(setup.tenant_id, DEFAULT_SHOP_SETTINGS)
        return len(rows)

    async def _create_dishes(self, store: TenantStore, setup: ShopSetup, state: _ProvisioningState) -> int:
        dishes = await store.add_dishes(setup.tenant_id, setup.dishes)
        state.dish_ids = {d.sort_order: d.id for d in dishes}
        return len(dishes)

    async def _create_recommendations(self, store: TenantStore, setup: ShopSetup, state: _ProvisioningState) -> int:
        # ids that were not part of this onboarding menu are taken as existing dish row ids
        dish_ids = [state.dish_ids.get(source_id, source_id) for source_id in setup.recommend_dishes or ()]
        rows = await store.add_recommendations(setup.tenant_id, dish_ids)
        return len(rows)

    async def _create_monitoring_config(self, store: TenantStore, setup: ShopSetup, state: _ProvisioningState) -> int:
        await store.create_monitoring_config(setup.tenant_id, setup.name, self._rules)
        return 1

    # ---------- pipeline ----------

    def _failure(self, index: int, step: str, exc: Exception) -> DomainError:
        message = f"{step} failed: {exc}"
        if index == 0:
            return ProvisioningFailed(message, details={"step": step})
        return PartialProvisioningFailure(message, details={"step": step})

    async def setup_new_shop(self, tenant_data: Union[ShopSetup, Mapping[str, Any]]) -> ProvisioningReport:
        """Provision a shop. Never raises; the report carries per-step outcomes."""
        try:
            setup = tenant_data if isinstance(tenant_data, ShopSetup) else ShopSetup.from_mapping(tenant_data)
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            error = ProvisioningFailed(f"Invalid shop data: {e}")
            tenant_id = str(tenant_data.get("tenant_id", "")) if isinstance(tenant_data, Mapping) else ""
            logger.error("Shop provisioning rejected", tenant_id=tenant_id, error=error.message)
            return ProvisioningReport(
                success=False,
                tenant_id=tenant_id,
                steps=tuple(StepResult(s.name, StepStatus.SKIPPED) for s in self.steps),
                error=error.message,
                error_code=error.code,
            )

        with log_context(tenant_id=setup.tenant_id):
            logger.info("Provisioning shop", atomic=self._atomic)
            if self._atomic:
                report = await self._run_atomic(setup)
            else:
                report = await self._run_stepwise(setup)

        if report.success:
            logger.info("Shop provisioned", tenant_id=setup.tenant_id)
        else:
            logger.error(
                "Shop provisioning failed",
                tenant_id=setup.tenant_id,
                step=report.failed_step,
                error=report.error,
                rolled_back=report.rolled_back,
            )
        return report

    async def _run_stepwise(self, setup: ShopSetup) -> ProvisioningReport:
        state = _ProvisioningState()
        results: List[StepResult] = []
        failure: DomainError | None = None

        for index, step in enumerate(self.steps):
            if failure is not None or not step.applies(setup):
                results.append(StepResult(step.name, StepStatus.SKIPPED))
                continue
            try:
                async with SQLAlchemyUnitOfWork(self._session_factory) as uow:
                    rows = await asyncio.wait_for(
                        step.run(TenantStore(uow.session), setup, state), timeout=self._timeout
                    )
                    await uow.commit()
                results.append(StepResult(step.name, StepStatus.SUCCESS, rows=rows))
                logger.debug("Provisioning step done", tenant_id=setup.tenant_id, step=step.name, rows=rows)
            except Exception as e:
                failure = self._failure(index, step.name, e)
                results.append(StepResult(step.name, StepStatus.ERROR, error=str(e)))

        return ProvisioningReport(
            success=failure is None,
            tenant_id=setup.tenant_id,
            steps=tuple(results),
            error=failure.message if failure else None,
            error_code=failure.code if failure else None,
        )

    async def _run_atomic(self, setup: ShopSetup) -> ProvisioningReport:
        state = _ProvisioningState()
        results: List[StepResult] = []
        failure: DomainError | None = None

        async with SQLAlchemyUnitOfWork(self._session_factory) as uow:
            store = TenantStore(uow.session)
            for index, step in enumerate(self.steps):
                if failure is not None or not step.applies(setup):
                    results.append(StepResult(step.name, StepStatus.SKIPPED))
                    continue
                try:
                    rows = await asyncio.wait_for(step.run(store, setup, state), timeout=self._timeout)
                    results.append(StepResult(step.name, StepStatus.SUCCESS, rows=rows))
                except Exception as e:
                    failure = self._failure(index, step.name, e)
                    results.append(StepResult(step.name, StepStatus.ERROR, error=str(e)))

            if failure is None:
                try:
                    await uow.commit()
                except Exception as e:
                    failure = ProvisioningFailed(f"commit failed: {e}")
            # an uncommitted unit of work rolls back on exit

        return ProvisioningReport(
            success=failure is None,
            tenant_id=setup.tenant_id,
            steps=tuple(results),
            error=failure.message if failure else None,
            error_code=failure.code if failure else None,
            rolled_back=failure is not None,
        )
