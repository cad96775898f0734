"""Command Line Interface for the Acme Veterinary Hospital registry.

`vetclinic shell` runs the interactive management session: it reads raw input
with Rich prompts, calls into the Registry and the persistence service, and
prints the outcome. `show`, `analyse` and `info` are one-shot commands that
work directly on the data file.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

import typer
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from vetclinic import __version__
from vetclinic.adapters.storage import FileLineStore, RegistryPersistence
from vetclinic.domain.enums import ConflictResolution, PetSize, PetType, Specialisation
from vetclinic.domain.ports import Result, always_merge
from vetclinic.domain.records import Doctor, Pet
from vetclinic.domain.registry import Registry
from vetclinic.domain.services import AssignmentGuard
from vetclinic.infrastructure.config_manager import StorageConfig
from vetclinic.infrastructure.logging_config import setup_logging
from vetclinic.infrastructure.settings import settings

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="vetclinic",
    help="Acme Veterinary Hospital management suite",
    add_completion=False
)
console = Console()

MENU = [
    ("-1", "Exit"),
    ("0", "Command Help"),
    ("1", "Add doctor"),
    ("2", "List doctors"),
    ("3", "Delete doctor"),
    ("4", "Add pet"),
    ("5", "Analyse pet"),
    ("6", "Edit pet"),
    ("7", "List pets"),
    ("8", "Delete pet"),
    ("9", "Assign pet to doctor"),
    ("10", "List pets assigned to doctor"),
    ("11", "Read data from file"),
    ("12", "Save data to file"),
]


def pluralise(word: str, count: int) -> str:
    """Append an 's' unless count is exactly one."""
    return word if count == 1 else word + "s"


def doctor_table(doctors: list[Doctor], title: Optional[str] = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Specialisation")
    for doctor in doctors:
        table.add_row(doctor.name, doctor.specialisation or "-")
    return table


def pet_table(pets: list[Pet], title: Optional[str] = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    for column in ("Name", "Size", "Type", "Age", "Weight", "Doctor"):
        table.add_column(column, style="cyan" if column == "Name" else None)
    for pet in pets:
        table.add_row(*["-" if value is None else str(value) for value in pet.to_display_dict().values()])
    return table


def configure_logging(verbose: bool) -> None:
    setup_logging(
        use_json=settings.logging_config.use_json,
        log_level="DEBUG" if verbose else settings.log_level,
    )


def create_persistence(data_file: Optional[Path] = None) -> RegistryPersistence:
    """Build the persistence service for the configured (or given) data file."""
    if data_file is not None:
        storage_config = StorageConfig(data_file=str(data_file), encoding=settings.encoding)
    else:
        storage_config = settings.storage_config
    store = FileLineStore(storage_config=storage_config)
    return RegistryPersistence(store, store)


def print_failure(result: Result) -> None:
    console.print(f"[red]✗[/red] {result.error}")


class ClinicShell:
    """Menu-driven session over one Registry.

    Parameters:
        registry: Registry the session edits
        persistence: Service used by the read/save commands
        console: Rich console for prompts and output
    """

    def __init__(self, registry: Registry, persistence: RegistryPersistence, console: Console):
        self.registry = registry
        self.persistence = persistence
        self.console = console
        self.guard = AssignmentGuard(self.confirm)
        self._commands: dict[str, Callable[[], None]] = {
            "0": self.print_help,
            "1": self.add_doctor,
            "2": self.list_doctors,
            "3": self.remove_doctor,
            "4": self.add_pet,
            "5": self.analyse_pet,
            "6": self.edit_pet,
            "7": self.list_pets,
            "8": self.remove_pet,
            "9": self.assign_pet,
            "10": self.list_pets_by_doctor,
            "11": self.read_data,
            "12": self.save_data,
        }

    # ------------------------------------------------------------------
    # Prompt helpers
    # ------------------------------------------------------------------

    def confirm(self, prompt: str) -> bool:
        return Confirm.ask(prompt, console=self.console)

    def resolve_conflict(self, existing: Union[Doctor, Pet], incoming: Union[Doctor, Pet]) -> ConflictResolution:
        kind = "Doctor" if isinstance(existing, Doctor) else "The pet"
        prompt = (
            f"{kind} '{existing.name}' is already in the system; would you like to update "
            f"their details to match the information in {self.persistence.source.describe()}?"
        )
        if self.confirm(prompt):
            return ConflictResolution.MERGE
        self.console.print(f"Information for '{incoming.name}' was ignored.")
        return ConflictResolution.SKIP

    def ask(self, prompt: str) -> str:
        return Prompt.ask(prompt, console=self.console, default="", show_default=False)

    def ask_until(self, prompt: str, is_valid: Callable[[str], bool], retry: str) -> str:
        """Re-prompt until is_valid accepts the answer."""
        answer = self.ask(prompt)
        while not is_valid(answer):
            answer = self.ask(f"Invalid input. {retry}")
        return answer

    def ask_name(self) -> str:
        return self.ask_until("Name", lambda value: bool(value.strip()), "Please re-enter name (must not be empty)")

    def ask_enum(self, label: str, enum_cls) -> str:
        options = ", ".join(enum_cls.choices())
        return self.ask_until(f"{label} ({options})", enum_cls.is_valid, f"Please re-enter {label.lower()} ({options})")

    def ask_age(self, prompt: str = "Age (years)") -> int:
        answer = self.ask_until(
            prompt,
            _is_age,
            "Please re-enter age (must be a positive no. of years)",
        )
        return int(answer)

    def ask_weight(self, prompt: str = "Weight (kg)") -> float:
        answer = self.ask_until(
            prompt,
            _is_positive_number,
            "Please re-enter weight in kilograms (must not be zero or negative)",
        )
        return float(answer)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def run(self) -> None:
        self.console.print(f"[bold blue]{settings.app_name}[/bold blue] [dim]v{settings.app_version}[/dim]\n")
        self.print_help()

        while True:
            option = Prompt.ask("What would you like to do? 0 for help, -1 to exit", console=self.console).strip()
            if option == "-1":
                self.console.print(f"Thank you for choosing to use {settings.app_name}.")
                return
            command = self._commands.get(option)
            if command is None:
                self.console.print(f"[yellow]⚠[/yellow] Unknown command '{option}'. Type 0 for help.")
                continue
            command()

    def print_help(self) -> None:
        table = Table(title="Commands List", show_header=False, box=None, padding=(0, 2))
        for key, description in MENU:
            table.add_row(f"({key})", description)
        self.console.print(table)

    # ------------------------------------------------------------------
    # Doctors
    # ------------------------------------------------------------------

    def add_doctor(self) -> None:
        self.console.print("Please input each of the doctor's details and press enter.")
        name = self.ask_name()
        if self.registry.has_doctor(name):
            self.console.print("There is already a doctor with that name.\n")
            return
        specialisation = self.ask_enum("Specialisation", Specialisation)

        result = self.registry.add_doctor(Doctor.create(name, specialisation))
        if result.is_failure():
            print_failure(result)
            return
        self.console.print("[green]✓[/green] New doctor successfully added to system.\n")

    def list_doctors(self) -> None:
        count = self.registry.doctor_count
        if count == 0:
            self.console.print("No doctors currently in the system.\n")
            return
        sort = self.confirm("Would you like the list to be sorted?")
        self.console.print(f"{count} {pluralise('doctor', count)} currently in the system:")
        self.console.print(doctor_table(self.registry.list_doctors(sort=sort)))

    def remove_doctor(self) -> None:
        if self.registry.doctor_count == 0:
            self.console.print("No doctors currently in the system.\n")
            return
        result = self.registry.remove_doctor(self.ask("Enter doctor name"))
        if result.is_failure():
            print_failure(result)
            return
        self.console.print("[green]✓[/green] Doctor successfully deleted from system.\n")

    # ------------------------------------------------------------------
    # Pets
    # ------------------------------------------------------------------

    def add_pet(self) -> None:
        self.console.print("Please input each of the pet's details and press enter.")
        name = self.ask_name()
        if self.registry.has_pet(name):
            self.console.print("There is already a pet with that name.\n")
            return
        size = self.ask_enum("Size", PetSize)
        pet_type = self.ask_enum("Type", PetType)
        age = self.ask_age()
        weight = self.ask_weight()

        result = self.registry.add_pet(Pet.create(name, size, pet_type, age, weight))
        if result.is_failure():
            print_failure(result)
            return
        self.console.print("[green]✓[/green] New pet successfully added to system.\n")

    def _find_pet(self) -> Optional[Pet]:
        if self.registry.pet_count == 0:
            self.console.print("No pets currently in the system.\n")
            return None
        name = self.ask("Enter pet name")
        pet = self.registry.find_pet(name)
        if pet is None:
            self.console.print(f"There are no pets named '{name}'\n")
        return pet

    def analyse_pet(self) -> None:
        pet = self._find_pet()
        if pet is None:
            return
        self.console.print(pet_table([pet]))
        status = "overweight." if pet.is_overweight() else "not overweight."
        self.console.print(f"{pet.name} is {status}\n")

    def edit_pet(self) -> None:
        pet = self._find_pet()
        if pet is None:
            return

        self.console.print("For each of the inputs below, type in the new value and press enter.")
        self.console.print("Leave the field blank to use the previous value.")
        size = self._ask_optional(f"Size (previously {pet.size})", PetSize.is_valid, "Please re-enter size (small, medium, large)")
        pet_type = self._ask_optional(f"Type (previously {pet.type})", PetType.is_valid, "Please re-enter type (dog or cat)")
        age = self._ask_optional(
            f"Age (previously {pet.age})",
            _is_age,
            "Please re-enter age (must be a positive no. of years)",
        )
        weight = self._ask_optional(
            f"Weight (previously {pet.weight})",
            _is_positive_number,
            "Please re-enter weight in kilograms (must not be zero or negative)",
        )

        result = self.registry.update_pet(
            pet.name,
            size=size,
            type=pet_type,
            age=int(age) if age is not None else None,
            weight=float(weight) if weight is not None else None,
        )
        if result.is_failure():
            print_failure(result)
            return

        if self.registry.doctor_count == 0:
            self.console.print("Doctor cannot be edited as no doctors exist.\n")
            return
        doctor_name = self._ask_optional(
            f"Doctor (previously {pet.doctor or 'none'})",
            self.registry.has_doctor,
            "Please re-enter the name of a doctor who exists",
        )
        if doctor_name is not None:
            doctor = self.registry.find_doctor(doctor_name)
            if self.guard.approve(pet, doctor):
                self.registry.assign_doctor(pet.name, doctor.name)

        self.console.print("\n[green]✓[/green] Pet properties have been updated to their new values.\n")

    def _ask_optional(self, prompt: str, is_valid: Callable[[str], bool], retry: str) -> Optional[str]:
        """Blank keeps the previous value (None); anything else must be valid."""
        answer = self.ask(prompt)
        if not answer.strip():
            return None
        while not is_valid(answer):
            answer = self.ask(f"Invalid input. {retry}")
        return answer

    def list_pets(self) -> None:
        count = self.registry.pet_count
        if count == 0:
            self.console.print("No pets currently in the system.\n")
            return
        sort = self.confirm("Would you like the list to be sorted?")
        self.console.print(f"{count} {pluralise('pet', count)} currently in the system:")
        self.console.print(pet_table(self.registry.list_pets(sort=sort)))

    def remove_pet(self) -> None:
        if self.registry.pet_count == 0:
            self.console.print("No pets currently in the system.\n")
            return
        result = self.registry.remove_pet(self.ask("Enter pet name"))
        if result.is_failure():
            print_failure(result)
            return
        self.console.print("[green]✓[/green] Pet successfully deleted from system.\n")

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assign_pet(self) -> None:
        if self.registry.doctor_count == 0 and self.registry.pet_count > 0:
            self.console.print("There are no doctors for you to assign a pet to.\n")
            return
        pet = self._find_pet()
        if pet is None:
            return

        doctor_name = self.ask("Enter doctor name")
        doctor = self.registry.find_doctor(doctor_name)
        if doctor is None:
            self.console.print(f"There are no doctors named '{doctor_name}'\n")
            return

        if not self.guard.approve(pet, doctor):
            self.console.print()
            return
        result = self.registry.assign_doctor(pet.name, doctor.name)
        if result.is_failure():
            print_failure(result)
            return
        self.console.print("[green]✓[/green] Successfully assigned pet to new doctor.\n")

    def list_pets_by_doctor(self) -> None:
        if self.registry.doctor_count == 0:
            self.console.print("No doctors currently in the system.\n")
            return
        if self.registry.pet_count == 0:
            self.console.print("There are no pets currently in the system.\n")
            return

        name = self.ask("Enter doctor name")
        if not self.registry.has_doctor(name):
            self.console.print(f"There are no doctors named '{name}'\n")
            return
        pets = self.registry.pets_of(name)
        if not pets:
            self.console.print(f"{name} currently has no pets assigned.\n")
            return
        self.console.print(pet_table(pets))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def read_data(self) -> None:
        source = self.persistence.source.describe()
        result = self.persistence.load(self.registry, on_conflict=self.resolve_conflict, confirm=self.confirm)
        if result.is_failure():
            if result.error_type == "SourceNotFoundError":
                self.console.print(
                    f"'{source}' was not found. Please create the file and ensure that the input "
                    "is valid before proceeding.\n"
                )
            elif result.error_type == "EmptySourceError":
                self.console.print(f"There isn't anything in {source}. Please add valid data before retrying.\n")
            else:
                line = (result.error_details or {}).get("line_number")
                location = f" (line {line})" if line else ""
                self.console.print(f"[red]✗[/red] Could not import {source}{location}: {result.error}\n")
            return

        summary = result.value
        if summary.total_imported == 0:
            self.console.print(f"No doctors or pets were imported from {source}\n")
            return
        self.console.print("[green]✓[/green] Data successfully imported into system.")
        self.console.print(
            f"{summary.pets_imported} {pluralise('pet', summary.pets_imported)} and "
            f"{summary.doctors_imported} {pluralise('doctor', summary.doctors_imported)} were imported.\n"
        )

    def save_data(self) -> None:
        result = self.persistence.save(self.registry, confirm_overwrite=self.confirm)
        if result.is_failure():
            if result.error_type == "SaveCancelled":
                self.console.print()
            elif result.error_type == "EmptySourceError":
                self.console.print(f"{result.error}.\n")
            else:
                print_failure(result)
            return

        summary = result.value
        self.console.print("[green]✓[/green] Data successfully written to file.")
        self.console.print(
            f"{summary.pets_exported} {pluralise('pet', summary.pets_exported)} and "
            f"{summary.doctors_exported} {pluralise('doctor', summary.doctors_exported)} were exported.\n"
        )


def _is_age(value: str) -> bool:
    try:
        return int(value) >= 0
    except ValueError:
        return False


def _is_positive_number(value: str) -> bool:
    try:
        return float(value) > 0
    except ValueError:
        return False


def load_registry(data_file: Optional[Path]) -> Registry:
    """Load the data file into a fresh registry, exiting on failure."""
    persistence = create_persistence(data_file)
    registry = Registry()
    result = persistence.load(registry, on_conflict=always_merge)
    if result.is_failure():
        print_failure(result)
        raise typer.Exit(code=1)
    return registry


# ============================================================================
# Commands
# ============================================================================

@app.command()
def shell(
    data_file: Optional[Path] = typer.Option(None, "--file", "-f", help="Data file (defaults to VC_DATA_FILE)"),
    load: bool = typer.Option(False, "--load", help="Read the data file before the first prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Start an interactive management session.

    Examples:
        vetclinic shell
        vetclinic shell --file clinic.txt --load
    """
    configure_logging(verbose)
    session = ClinicShell(Registry(), create_persistence(data_file), console)
    logger.debug(f"Shell started on {session.persistence.source.describe()}")
    if load:
        session.read_data()
    try:
        session.run()
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]⚠[/yellow] Session ended")
        raise typer.Exit(code=130)


@app.command()
def show(
    data_file: Optional[Path] = typer.Option(None, "--file", "-f", help="Data file (defaults to VC_DATA_FILE)"),
    sort: bool = typer.Option(False, "--sort", "-s", help="Sort records by name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Print the doctors and pets stored in a data file."""
    configure_logging(verbose)
    registry = load_registry(data_file)

    console.print(doctor_table(registry.list_doctors(sort=sort), title="Doctors"))
    console.print(pet_table(registry.list_pets(sort=sort), title="Pets"))
    console.print(
        f"{registry.pet_count} {pluralise('pet', registry.pet_count)} and "
        f"{registry.doctor_count} {pluralise('doctor', registry.doctor_count)}"
    )


@app.command()
def analyse(
    name: str = typer.Argument(..., help="Pet name"),
    data_file: Optional[Path] = typer.Option(None, "--file", "-f", help="Data file (defaults to VC_DATA_FILE)"),
) -> None:
    """Report whether a pet in the data file is overweight."""
    configure_logging(False)
    registry = load_registry(data_file)

    pet = registry.find_pet(name)
    if pet is None:
        console.print(f"[red]✗[/red] There are no pets named '{name}'")
        raise typer.Exit(code=1)
    console.print(pet_table([pet]))
    console.print(f"{pet.name} is {'overweight' if pet.is_overweight() else 'not overweight'}.")


@app.command()
def info() -> None:
    """Display configuration."""
    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Application:", settings.app_name)
    info_table.add_row("Data File:", str(settings.data_file))
    info_table.add_row("Encoding:", settings.encoding)
    info_table.add_row("Log Level:", settings.log_level)
    console.print(info_table)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version information")
) -> None:
    """Acme Veterinary Hospital management suite."""
    if version:
        console.print(f"vetclinic v{__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


if __name__ == "__main__":
    app()
