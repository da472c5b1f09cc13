"""Main kdump provisioning implementation."""

from typing import Callable, List, NamedTuple, Optional

import structlog

from kdump_enabler.config import EnablerConfig
from kdump_enabler.distro import (
    DistributionProfile,
    OSRelease,
    grub_regeneration_commands,
    read_os_release,
    resolve_profile,
)
from kdump_enabler.exceptions import (
    BackupError,
    PackageInstallError,
    SystemRequirementError,
    UnsupportedDistributionError,
)
from kdump_enabler.inspector import StateInspector, SystemStatus
from kdump_enabler.mutator import ConfigEdit, ConfigMutator
from kdump_enabler.packages import PackageInstaller
from kdump_enabler.services import ServiceManager
from kdump_enabler.sizing import recommend_crashkernel_size
from kdump_enabler.system_info import SystemInfo
from kdump_enabler.types import KdumpConfigStyle, Stage, StepOutcome, StepResult
from kdump_enabler.utils.command import CommandExecutor
from kdump_enabler.utils.file import FileManager
from kdump_enabler.utils.output import Console

logger = structlog.get_logger(__name__)

ConfirmCallback = Callable[[str], bool]

SYSRQ_PATTERN = r"^\s*kernel\.sysrq\s*="

DOCUMENTATION_LINKS = (
    ("Ubuntu/Debian", "https://wiki.ubuntu.com/Kernel/CrashdumpRecipe"),
    (
        "RHEL/Fedora",
        "https://access.redhat.com/documentation/en-us/red_hat_enterprise_linux/8/html/"
        "managing_monitoring_and_updating_the_kernel/"
        "installing-and-configuring-kdump_managing-monitoring-and-updating-the-kernel",
    ),
)


class EnablerOptions(NamedTuple):
    """Run options taken from the command line."""

    auto_confirm: bool = False
    skip_sysrq: bool = False
    check_only: bool = False


class RunReport:
    """What a run did, step by step."""

    def __init__(self) -> None:
        self.stage = Stage.START
        self.steps: List[StepResult] = []
        self.status: Optional[SystemStatus] = None
        self.exit_code = 0
        self.declined = False
        self.mutated = False

    def record(self, step: StepResult) -> StepResult:
        self.stage = step.stage
        self.steps.append(step)
        return step

    @property
    def degraded(self) -> List[StepResult]:
        return [s for s in self.steps if s.outcome is StepOutcome.DEGRADED]

    @property
    def fatal(self) -> bool:
        return any(s.outcome is StepOutcome.FATAL for s in self.steps)


def _decline(prompt: str) -> bool:
    return False


class KdumpEnabler:
    """Bring a host from unconfigured to kdump-ready, pending reboot."""

    def __init__(
        self,
        config: EnablerConfig,
        options: Optional[EnablerOptions] = None,
        system: Optional[SystemInfo] = None,
        executor: Optional[CommandExecutor] = None,
        confirm: Optional[ConfirmCallback] = None,
        console: Optional[Console] = None,
        file_manager: Optional[FileManager] = None,
    ) -> None:
        """Initialize kdump enabler.

        Args:
            config: Configuration object
            options: Command-line run options
            system: Host probes, built from config when omitted
            executor: Command runner shared by every step
            confirm: Asks the user a yes/no question; declines when omitted
            console: User-facing output
            file_manager: File access and backups
        """
        self.config = config
        self.options = options or EnablerOptions()
        self.executor = executor or CommandExecutor(timeout=config.kdump.command_timeout)
        self.system = system or SystemInfo(config)
        self.services = ServiceManager(self.executor)
        self.mutator = ConfigMutator(file_manager or FileManager(), self.executor)
        self.confirm = confirm or _decline
        self.console = console or Console()
        self.report = RunReport()

        self.os_release: Optional[OSRelease] = None
        self.profile: Optional[DistributionProfile] = None

    def run(self) -> RunReport:
        """Execute the provisioning sequence.

        Returns:
            RunReport whose exit_code is 0 on success or a clean decline

        Raises:
            EnablerError: On a fatal step (privileges, distro, packages)
        """
        report = self.report
        logger.info("run_start", **self.options._asdict())

        self.check_root()
        self.resolve_distribution()
        self.console.line()

        status = self.check_status()

        if status.configured:
            if self.options.check_only:
                return self._finish(0)
            if not self.options.auto_confirm:
                self.console.line()
                report.stage = Stage.CONFIRM_GATE
                if not self.confirm("kdump appears to be configured. Continue anyway? [y/N] "):
                    return self._decline()
        self.console.line()

        if self.options.check_only:
            return self._finish(1)

        if not self.options.auto_confirm:
            report.stage = Stage.CONFIRM_GATE
            self._show_plan()
            if not self.confirm("Do you want to continue? [y/N] "):
                return self._decline()
            self.console.line()

        report.mutated = True
        try:
            self.install_packages()
            self.console.line()

            for step in (self.configure_crashkernel, self.configure_kdump, self.enable_service):
                step()
                self.console.line()

            if not self.options.skip_sysrq:
                self.enable_sysrq()
                self.console.line()

            self.show_instructions()
            if report.degraded:
                self.console.warning(
                    f"kdump enabler finished with {len(report.degraded)} warning(s); "
                    "recheck with --check-only after reboot"
                )
            else:
                self.console.success("kdump enabler completed successfully!")
        finally:
            self.console.warning("Please reboot your system to apply all changes")

        return self._finish(0)

    def _finish(self, exit_code: int) -> RunReport:
        self.report.stage = Stage.DONE
        self.report.exit_code = exit_code
        logger.info("run_done", exit_code=exit_code, steps=len(self.report.steps))
        return self.report

    def _decline(self) -> RunReport:
        self.console.info("Exiting without changes")
        self.report.declined = True
        return self._finish(0)

    def _fatal(self, stage: Stage, error: Exception) -> None:
        self.report.record(StepResult(stage, StepOutcome.FATAL, str(error)))
        self.report.exit_code = 1
        logger.error("step_fatal", stage=stage.value, error=str(error))

    def _degraded(self, stage: Stage, message: str) -> StepResult:
        self.console.warning(message)
        logger.info("step_degraded", stage=stage.value, reason=message)
        return self.report.record(StepResult(stage, StepOutcome.DEGRADED, message))

    def check_root(self) -> StepResult:
        """Refuse to run without root privileges.

        Raises:
            SystemRequirementError: If not running as root
        """
        if not self.system.is_root:
            error = SystemRequirementError("This tool must be run as root or with sudo")
            self._fatal(Stage.ROOT_CHECK, error)
            raise error
        logger.debug("host_probed", **self.system.to_dict())
        return self.report.record(StepResult(Stage.ROOT_CHECK, StepOutcome.SUCCESS))

    def resolve_distribution(self) -> DistributionProfile:
        """Detect the distribution and pick its profile.

        Raises:
            UnsupportedDistributionError: If it cannot be detected or is unsupported
        """
        self.console.info("Detecting Linux distribution...")
        paths = self.config.paths
        try:
            self.os_release = read_os_release(paths.resolve(paths.os_release))
            self.profile = resolve_profile(self.os_release.id)
        except UnsupportedDistributionError as e:
            self._fatal(Stage.DISTRO_RESOLVED, e)
            raise

        self.console.success(f"Detected: {self.os_release.display_name}")
        self.console.info(f"Package manager: {self.profile.package_manager.value}")
        self.report.record(StepResult(Stage.DISTRO_RESOLVED, StepOutcome.SUCCESS, self.profile.id))
        return self.profile

    def _require_profile(self) -> DistributionProfile:
        if self.profile is None:
            return self.resolve_distribution()
        return self.profile

    def check_status(self) -> SystemStatus:
        """Inspect the current kdump state and print it."""
        self.console.info("Checking current kdump configuration...")
        inspector = StateInspector(self._require_profile(), self.system, self.services)
        status = inspector.inspect()
        self._show_status(status)

        self.report.status = status
        self.report.record(
            StepResult(
                Stage.STATUS_CHECKED,
                StepOutcome.SUCCESS,
                "configured" if status.configured else "needs configuration",
            )
        )
        return status

    def _show_status(self, status: SystemStatus) -> None:
        out = self.console

        if status.service_exists is None:
            out.warning("systemctl not found, cannot query the kdump service")
        elif not status.service_exists:
            out.warning("kdump service not found")
        else:
            if status.service_active:
                out.success("kdump service is active")
            else:
                out.warning("kdump service exists but is not active")
            if status.service_enabled:
                out.success("kdump service is enabled at boot")
            else:
                out.warning("kdump service is not enabled at boot")

        if status.crashkernel_param:
            out.success(f"Crashkernel parameter set: {status.crashkernel_param}")
        else:
            out.warning("No crashkernel parameter found in kernel command line")
            out.info("A reboot will be required after configuration")

        if status.sysrq_value is not None:
            if status.sysrq_enabled:
                out.success(f"SysRq is enabled (value: {status.sysrq_value})")
            else:
                out.warning("SysRq is disabled")

        if status.crash_dir_present:
            out.info(
                f"Crash dump directory: {self.config.kdump.crash_dir} "
                f"({status.crash_dump_count} dumps found)"
            )

        out.line()
        if status.configured:
            out.success("System is properly configured for kdump")
        else:
            out.warning("System requires kdump configuration")

    def _show_plan(self) -> None:
        profile = self._require_profile()
        self.console.warning("This tool will:")
        self.console.line(f"  1. Install kdump packages ({' '.join(profile.packages)})")
        self.console.line("  2. Configure crashkernel parameter in GRUB")
        self.console.line("  3. Enable and start kdump service")
        if not self.options.skip_sysrq:
            self.console.line("  4. Enable SysRq crash trigger")
        self.console.line("  5. Require a system reboot to complete setup")
        self.console.line()

    def install_packages(self) -> StepResult:
        """Install the crash-dump tooling.

        Raises:
            PackageInstallError: If the package manager fails
        """
        profile = self._require_profile()
        self.console.info("Installing required packages...")
        installer = PackageInstaller(
            self.executor, profile.package_manager, timeout=self.config.kdump.package_timeout
        )
        try:
            installer.install(profile.packages)
        except PackageInstallError as e:
            self._fatal(Stage.PACKAGES_INSTALLED, e)
            raise

        self.console.success("Packages installed successfully")
        return self.report.record(StepResult(Stage.PACKAGES_INSTALLED, StepOutcome.SUCCESS))

    def configure_crashkernel(self) -> StepResult:
        """Add crashkernel=<size> to the grub defaults and rebuild grub.cfg."""
        stage = Stage.BOOT_PARAM_CONFIGURED
        profile = self._require_profile()
        self.console.info("Configuring crashkernel parameter...")

        total_ram = self.system.total_ram_gb()
        size = recommend_crashkernel_size(total_ram)
        self.console.info(f"Recommended crashkernel size: {size} (Total RAM: {total_ram}GB)")

        # Only the booted kernel is consulted; see DESIGN.md.
        if self.system.has_crashkernel():
            self.console.warning("Crashkernel parameter already set, skipping GRUB modification")
            return self.report.record(StepResult(stage, StepOutcome.SKIPPED, "already on cmdline"))

        paths = self.config.paths
        grub = paths.resolve(paths.grub_default)
        edit = ConfigEdit.merge_argument(profile.grub_cmdline_key, f"crashkernel={size}")

        try:
            result = self.mutator.apply(grub, [edit], critical=True)
        except (BackupError, OSError) as e:
            return self._degraded(stage, f"GRUB configuration not updated: {e}")

        if result.skipped:
            self.console.warning(f"{grub} not found, skipping GRUB modification")
            return self.report.record(StepResult(stage, StepOutcome.SKIPPED, "no grub defaults"))

        if not result.changed:
            self.console.info(f"crashkernel={size} already present in {grub}")
            return self.report.record(StepResult(stage, StepOutcome.SUCCESS, "unchanged"))

        if result.backup:
            self.console.info(f"Backup saved: {result.backup.backup_path}")

        os_id = self.os_release.id if self.os_release is not None else profile.id
        commands = grub_regeneration_commands(profile, os_id, self.system.is_efi)
        regen = self.mutator.regenerate_bootloader(commands)
        if not regen.success:
            return self._degraded(
                stage,
                f"GRUB defaults updated but regenerating grub.cfg failed; "
                f"run '{' '.join(commands[-1])}' manually",
            )

        self.console.success("GRUB configuration updated")
        return self.report.record(StepResult(stage, StepOutcome.SUCCESS, f"crashkernel={size}"))

    def _kdump_config_edits(self, profile: DistributionProfile) -> List[ConfigEdit]:
        settings = self.config.kdump
        if profile.kdump_config is KdumpConfigStyle.FLAT:
            return [ConfigEdit.replace(r"^USE_KDUMP=", "USE_KDUMP=1")]
        if profile.kdump_config is KdumpConfigStyle.DIRECTIVE:
            return [
                ConfigEdit.ensure(r"^path\s", f"path {settings.crash_dir}"),
                ConfigEdit.ensure(r"^core_collector\b", f"core_collector {settings.core_collector}"),
            ]
        return []

    def configure_kdump(self) -> StepResult:
        """Create the crash directory and enable dumping in the tool's config."""
        stage = Stage.SERVICE_CONFIG_CONFIGURED
        profile = self._require_profile()
        self.console.info("Configuring kdump settings...")

        crash_dir = self.system.crash_dir
        try:
            crash_dir.mkdir(parents=True, exist_ok=True)
            crash_dir.chmod(0o755)
        except OSError as e:
            return self._degraded(stage, f"Cannot prepare crash dump directory {crash_dir}: {e}")
        self.console.success(f"Crash dump directory: {self.config.kdump.crash_dir}")

        edits = self._kdump_config_edits(profile)
        if not edits:
            return self.report.record(StepResult(stage, StepOutcome.SKIPPED, "no kdump config"))

        paths = self.config.paths
        if profile.kdump_config is KdumpConfigStyle.FLAT:
            target = paths.resolve(paths.kdump_tools_default)
        else:
            target = paths.resolve(paths.kdump_conf)

        try:
            result = self.mutator.apply(target, edits)
        except OSError as e:
            return self._degraded(stage, f"Cannot update {target}: {e}")

        if result.skipped:
            self.console.info(f"{target} not found, leaving kdump defaults")
            return self.report.record(StepResult(stage, StepOutcome.SKIPPED, "config missing"))

        self.console.success(f"{target.name} configured")
        return self.report.record(StepResult(stage, StepOutcome.SUCCESS))

    def enable_service(self) -> StepResult:
        """Enable the crash-dump unit and start it when memory is already reserved."""
        stage = Stage.SERVICE_ENABLED
        unit = self._require_profile().service_name
        self.console.info("Enabling kdump service...")

        enabled = self.services.enable(unit)
        if not enabled.success:
            return self._degraded(stage, f"Failed to enable {unit}: {enabled.stderr.strip()}")
        self.console.success("kdump service enabled at boot")

        if not self.system.has_crashkernel():
            self.console.warning(
                "kdump service will start after reboot (crashkernel parameter needs to be loaded)"
            )
            return self.report.record(StepResult(stage, StepOutcome.SUCCESS, "enabled"))

        started = self.services.start(unit)
        if not started.success:
            return self._degraded(stage, "Failed to start kdump service (may require reboot)")

        self.console.success("kdump service started")
        return self.report.record(StepResult(stage, StepOutcome.SUCCESS, "started"))

    def enable_sysrq(self) -> StepResult:
        """Enable SysRq now and persist it through sysctl."""
        stage = Stage.SYSRQ_ENABLED
        value = self.config.kdump.sysrq_value
        problems: List[str] = []
        self.console.info("Enabling SysRq crash trigger...")

        try:
            self.system.write_sysrq(value)
            self.console.success("SysRq enabled for current session")
        except OSError as e:
            problems.append(f"cannot set live SysRq value: {e}")

        paths = self.config.paths
        sysctl_conf = paths.resolve(paths.sysctl_conf)
        sysctl_d = paths.resolve(paths.sysctl_d)
        edit = ConfigEdit.replace(SYSRQ_PATTERN, f"kernel.sysrq = {value}")

        target = None
        try:
            if sysctl_conf.exists():
                target = sysctl_conf
                self.mutator.apply(sysctl_conf, [edit])
            elif sysctl_d.is_dir():
                target = sysctl_d / self.config.kdump.sysctl_dropin
                self.mutator.apply(target, [edit], create=True)
            else:
                problems.append("no sysctl.conf or sysctl.d to persist SysRq")
        except OSError as e:
            problems.append(f"cannot persist SysRq to {target}: {e}")
            target = None

        if target is not None:
            self.console.success(f"SysRq configuration persisted to {target}")
            applied = self.executor.execute(["sysctl", "-p", str(target)], check=False)
            if not applied.success:
                problems.append(f"sysctl -p {target} failed: {applied.stderr.strip()}")

        if problems:
            return self._degraded(stage, "; ".join(problems))
        return self.report.record(StepResult(stage, StepOutcome.SUCCESS))

    def show_instructions(self) -> None:
        """Print post-installation verification steps."""
        out = self.console
        unit = self._require_profile().service_name
        out.line()
        out.line("╔════════════════════════════════════════════════════════════════╗")
        out.line("║                    KDUMP SETUP COMPLETED                       ║")
        out.line("╚════════════════════════════════════════════════════════════════╝")
        out.line()
        out.warning("IMPORTANT: A system reboot is required to apply all changes!")
        out.line()
        out.line("After reboot, verify kdump is working:")
        out.line("    sudo kdump-config show     # Ubuntu/Debian")
        out.line("    sudo kdumpctl showmem      # RHEL/CentOS/Fedora")
        out.line(f"    sudo systemctl status {unit}")
        out.line()
        out.line("To trigger a test crash dump (WILL REBOOT THE SYSTEM):")
        out.line("    echo c | sudo tee /proc/sysrq-trigger")
        out.line()
        out.line(f"Crash dumps will be saved to: {self.config.kdump.crash_dir}")
        out.line()
        out.line("For more information, see:")
        for label, url in DOCUMENTATION_LINKS:
            out.line(f"    - {label}: {url}")
        out.line()
