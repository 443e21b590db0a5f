# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""ORM models: one account table per role plus the per-role profile tables."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from freelancehub.infra.db import Base


class Client(Base):
    __tablename__ = "client"

    client_id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    # argon2 digest, or a federated placeholder for provider-only accounts
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="client")

    __table_args__ = (UniqueConstraint("email", name="uq_client_email"),)


class Freelancer(Base):
    __tablename__ = "freelancer"

    freelancer_id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="freelancer")

    __table_args__ = (UniqueConstraint("email", name="uq_freelancer_email"),)


class ClientInfo(Base):
    __tablename__ = "client_info"

    client_id = Column(Integer, ForeignKey("client.client_id"), primary_key=True)
    name = Column(String(120), nullable=False)
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)
    photo = Column(String(255), nullable=True)
    company = Column(String(120), nullable=True)
    location = Column(String(120), nullable=True)


class FreelancerInfo(Base):
    __tablename__ = "freelancer_info"

    freelancer_id = Column(Integer, ForeignKey("freelancer.freelancer_id"), primary_key=True)
    name = Column(String(120), nullable=False)
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)
    photo = Column(String(255), nullable=True)
    title = Column(String(120), nullable=True)
    skills = Column(String(500), nullable=True)
    hourly_rate = Column(Integer, nullable=True)
    bio = Column(Text, nullable=True)


class Project(Base):
    __tablename__ = "project"

    project_id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("client.client_id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    budget = Column(Integer, nullable=True)
    skills = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
