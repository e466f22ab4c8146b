"""
apimock Fake Data Providers

Realistic random values for the {{faker.*}} template namespace.

Two providers implement the same interface:
- FakerDataProvider: backed by the Faker library (locale and seed aware)
- BuiltinDataProvider: small fixed tables, no locale support

The backend is chosen once when the server starts (see
create_fake_data_provider()); templates only ever see the namespace built by
faker_namespace().
"""

import random
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from faker import Faker


class FakeDataProvider(ABC):
    """Capability interface for fake data generators."""

    @abstractmethod
    def full_name(self) -> str: ...

    @abstractmethod
    def first_name(self) -> str: ...

    @abstractmethod
    def last_name(self) -> str: ...

    @abstractmethod
    def email(self) -> str: ...

    @abstractmethod
    def url(self) -> str: ...

    @abstractmethod
    def username(self) -> str: ...

    @abstractmethod
    def domain(self) -> str: ...

    @abstractmethod
    def street(self) -> str: ...

    @abstractmethod
    def city(self) -> str: ...

    @abstractmethod
    def country(self) -> str: ...

    @abstractmethod
    def zip_code(self) -> str: ...

    @abstractmethod
    def company_name(self) -> str: ...

    @abstractmethod
    def industry(self) -> str: ...

    @abstractmethod
    def sentence(self) -> str: ...

    @abstractmethod
    def paragraph(self) -> str: ...

    @abstractmethod
    def words(self, count: int = 3) -> str: ...

    @abstractmethod
    def integer(self, min_value: int = 0, max_value: int = 999) -> int: ...

    @abstractmethod
    def decimal(self, min_value: float = 0, max_value: float = 999) -> float: ...


class FakerDataProvider(FakeDataProvider):
    """
    Fake data from the Faker library.

    Example:
        provider = FakerDataProvider(locale='de_DE', seed=42)
        provider.full_name()  # deterministic for a given seed
    """

    def __init__(self, locale: str = 'en_US', seed: Optional[int] = None):
        self.locale = locale
        self.faker = Faker(locale)
        if seed is not None:
            self.faker.seed_instance(seed)

    def full_name(self) -> str:
        return self.faker.name()

    def first_name(self) -> str:
        return self.faker.first_name()

    def last_name(self) -> str:
        return self.faker.last_name()

    def email(self) -> str:
        return self.faker.email()

    def url(self) -> str:
        return self.faker.url()

    def username(self) -> str:
        return self.faker.user_name()

    def domain(self) -> str:
        return self.faker.domain_name()

    def street(self) -> str:
        return self.faker.street_address()

    def city(self) -> str:
        return self.faker.city()

    def country(self) -> str:
        return self.faker.country()

    def zip_code(self) -> str:
        return self.faker.postcode()

    def company_name(self) -> str:
        return self.faker.company()

    def industry(self) -> str:
        return self.faker.catch_phrase()

    def sentence(self) -> str:
        return self.faker.sentence()

    def paragraph(self) -> str:
        return self.faker.paragraph()

    def words(self, count: int = 3) -> str:
        return ' '.join(self.faker.words(nb=count))

    def integer(self, min_value: int = 0, max_value: int = 999) -> int:
        return self.faker.random_int(min=min_value, max=max_value)

    def decimal(self, min_value: float = 0, max_value: float = 999) -> float:
        return self.faker.random.uniform(min_value, max_value)


class BuiltinDataProvider(FakeDataProvider):
    """Fake data drawn from small fixed tables."""

    NAMES = ['John Doe', 'Jane Smith', 'Bob Johnson', 'Alice Brown', 'Charlie Wilson']
    EMAILS = ['user@example.com', 'test@email.com', 'sample@domain.com']
    CITIES = ['New York', 'Los Angeles', 'Chicago', 'Houston', 'Phoenix']
    COMPANIES = ['TechCorp', 'DataSoft', 'WebSolutions', 'CloudTech', 'DevCompany']
    SENTENCE = 'Lorem ipsum dolor sit amet, consectetur adipiscing elit.'
    PARAGRAPH = (
        'Lorem ipsum dolor sit amet, consectetur adipiscing elit. '
        'Sed do eiusmod tempor incididunt ut labore et dolore magna aliqua.'
    )

    def __init__(self, seed: Optional[int] = None):
        self.random = random.Random(seed)

    def full_name(self) -> str:
        return self.random.choice(self.NAMES)

    def first_name(self) -> str:
        return self.full_name().split(' ')[0]

    def last_name(self) -> str:
        parts = self.full_name().split(' ')
        return parts[1] if len(parts) > 1 else 'Smith'

    def email(self) -> str:
        return self.random.choice(self.EMAILS)

    def url(self) -> str:
        return 'https://example.com'

    def username(self) -> str:
        return f'user{self.random.randint(0, 999)}'

    def domain(self) -> str:
        return 'example.com'

    def street(self) -> str:
        return f'{self.random.randint(0, 9998)} Main St'

    def city(self) -> str:
        return self.random.choice(self.CITIES)

    def country(self) -> str:
        return 'United States'

    def zip_code(self) -> str:
        return str(self.random.randint(0, 99998)).zfill(5)

    def company_name(self) -> str:
        return self.random.choice(self.COMPANIES)

    def industry(self) -> str:
        return 'Innovative solutions for modern businesses'

    def sentence(self) -> str:
        return self.SENTENCE

    def paragraph(self) -> str:
        return self.PARAGRAPH

    def words(self, count: int = 3) -> str:
        return ' '.join(['lorem'] * count)

    def integer(self, min_value: int = 0, max_value: int = 999) -> int:
        return self.random.randint(min_value, max_value)

    def decimal(self, min_value: float = 0, max_value: float = 999) -> float:
        return self.random.uniform(min_value, max_value)


FAKE_DATA_BACKENDS = ('faker', 'builtin')


def create_fake_data_provider(
    backend: str = 'faker',
    locale: str = 'en_US',
    seed: Optional[int] = None
) -> FakeDataProvider:
    """
    Create the fake data provider for a server instance.

    Args:
        backend: 'faker' (Faker library) or 'builtin' (fixed tables)
        locale: Faker locale, ignored by the builtin backend
        seed: Optional seed for reproducible values

    Raises:
        ValueError: If backend is unknown
    """
    if backend == 'faker':
        return FakerDataProvider(locale=locale, seed=seed)
    elif backend == 'builtin':
        return BuiltinDataProvider(seed=seed)
    raise ValueError(f"Unknown fake data backend: {backend!r} (expected one of {', '.join(FAKE_DATA_BACKENDS)})")


def faker_namespace(provider: FakeDataProvider) -> Dict[str, Dict[str, Callable[..., Any]]]:
    """
    Build the {{faker.*}} template namespace on top of a provider.

    Keys are part of the template syntax users write, e.g.
    {{faker.name.fullName}} or {{faker.address.zipCode}}.
    """
    return {
        'name': {
            'fullName': provider.full_name,
            'firstName': provider.first_name,
            'lastName': provider.last_name
        },
        'internet': {
            'email': provider.email,
            'url': provider.url,
            'username': provider.username,
            'domain': provider.domain
        },
        'address': {
            'street': provider.street,
            'city': provider.city,
            'country': provider.country,
            'zipCode': provider.zip_code
        },
        'company': {
            'name': provider.company_name,
            'industry': provider.industry
        },
        'lorem': {
            'sentence': provider.sentence,
            'paragraph': provider.paragraph,
            'words': provider.words
        },
        'number': {
            'int': provider.integer,
            'float': provider.decimal
        }
    }
