from backoffice.database import SessionLocal, init_db
from backoffice.models.employee import Employee, EmployeeRole
from backoffice.services.calendar_store import CalendarStore

def seed():
    init_db()
    db = SessionLocal()
    try:
        # 1. Ensure the default office schedule exists
        schedule = CalendarStore(db).create_default_schedule()
        db.commit()
        print(f"Office schedule weekly off days: {', '.join(schedule.weekly_off_days)}")

        # 2. Check if admin exists
        admin_email = "admin@example.com"
        admin = db.query(Employee).filter(Employee.email == admin_email).first()

        if not admin:
            admin = Employee(
                email=admin_email,
                full_name="Admin User",
                role=EmployeeRole.ADMIN.value,
                is_active=True
            )
            db.add(admin)
            db.commit()
            print(f"Admin employee {admin_email} created")
        else:
            print(f"Admin employee {admin_email} already exists")

    finally:
        db.close()

if __name__ == "__main__":
    seed()
