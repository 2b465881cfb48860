import random
from datetime import date, timedelta

import click
from flask import current_app
from flask.cli import with_appcontext
from onco_records.extensions import db
from onco_records.models.patient_models import Patient, SEX_CHOICES, BLOOD_TYPE_CHOICES

DEMO_LAST_NAMES = ['Alaoui', 'Bennani', 'Chraibi', 'Dubois', 'El Fassi', 'Martin', 'Tazi', 'Idrissi']
DEMO_FIRST_NAMES = ['Amina', 'Youssef', 'Sara', 'Karim', 'Lina', 'Omar', 'Nadia', 'Hamza']
DEMO_CITIES = ['Casablanca', 'Rabat', 'Marrakech', 'Fes', 'Tanger']
DEMO_DIAGNOSES = [None, 'Breast carcinoma', 'Colorectal adenocarcinoma', 'Non-small cell lung cancer']

@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create all database tables."""
    db.create_all()
    click.echo("Database initialized successfully!")

@click.command('seed-patients')
@click.option('--count', default=25, show_default=True, help='Number of demo patients to create.')
@with_appcontext
def seed_patients_command(count):
    """Fill an empty database with demo patient records."""
    if Patient.query.first() is not None:
        click.echo("Patients already exist, skipping seeding.")
        return

    today = date.today()
    for index in range(count):
        db.session.add(Patient(
            last_name=random.choice(DEMO_LAST_NAMES),
            first_name=random.choice(DEMO_FIRST_NAMES),
            birth_date=today - timedelta(days=random.randint(20 * 365, 85 * 365)),
            sex=random.choice(SEX_CHOICES),
            national_id=f"DM{index:06d}",
            phone=f"06{random.randint(0, 99999999):08d}",
            city=random.choice(DEMO_CITIES),
            blood_type=random.choice(BLOOD_TYPE_CHOICES),
            primary_diagnosis=random.choice(DEMO_DIAGNOSES),
            created_by_user_id=current_app.config['DEFAULT_USER_ID'],
            clinic_id=current_app.config['DEFAULT_CLINIC_ID'],
        ))
    db.session.commit()
    click.echo(f"Created {count} demo patients.")

def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_patients_command)
